from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import ChatRoomMember, User
from taskflow.schemas import RoomMemberRequest
from taskflow.services.authz import (
    is_room_member,
    load_room,
    require_room_manager,
    require_room_member,
    workspace_role,
)

router = APIRouter(prefix="/chat-room-members", tags=["chat"])


@router.get("")
@failure_message("Failed to fetch room members")
def list_room_members(
    room_id: int = Query(alias="roomId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    room = load_room(db, room_id)
    require_room_member(db, identity, room)

    rows = (
        db.query(ChatRoomMember, User)
        .join(User, User.id == ChatRoomMember.user_id)
        .filter(ChatRoomMember.room_id == room.id)
        .order_by(ChatRoomMember.joined_at.asc(), ChatRoomMember.id.asc())
        .all()
    )
    return [
        {
            "id": member.id,
            "user_id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
            "avatar_url": user.avatar_url,
            "joined_at": member.joined_at,
        }
        for member, user in rows
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to add member to room")
def add_room_member(
    payload: RoomMemberRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    room = load_room(db, payload.room_id)
    require_room_manager(db, identity, room)

    if workspace_role(db, room.workspace_id, payload.user_id) is None:
        raise HTTPException(status_code=400, detail="User is not a member of this workspace")

    if not is_room_member(db, room.id, payload.user_id):
        db.add(ChatRoomMember(room_id=room.id, user_id=payload.user_id))
        db.commit()

    return {"message": "Member added to room"}


@router.delete("")
@failure_message("Failed to remove member from room")
def remove_room_member(
    payload: RoomMemberRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    room = load_room(db, payload.room_id)
    require_room_manager(db, identity, room)

    db.query(ChatRoomMember).filter(
        ChatRoomMember.room_id == room.id,
        ChatRoomMember.user_id == payload.user_id,
    ).delete(synchronize_session=False)
    db.commit()

    return {"message": "Member removed from room"}
