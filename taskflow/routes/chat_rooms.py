from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import ChatRoom, ChatRoomMember
from taskflow.schemas import ChatRoomCreate, ChatRoomOut, dump
from taskflow.services.activity import log_activity
from taskflow.services.authz import require_workspace_member, workspace_role

router = APIRouter(prefix="/chat-rooms", tags=["chat"])


@router.get("")
@failure_message("Failed to fetch chat rooms")
def list_chat_rooms(
    workspace_id: int = Query(alias="workspaceId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    rooms = (
        db.query(ChatRoom)
        .join(ChatRoomMember, ChatRoomMember.room_id == ChatRoom.id)
        .filter(
            ChatRoom.workspace_id == workspace_id,
            ChatRoomMember.user_id == identity.id,
            ChatRoom.is_archived.is_(False),
        )
        .order_by(ChatRoom.created_at.desc(), ChatRoom.id.desc())
        .all()
    )
    return [dump(ChatRoomOut, r) for r in rooms]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create chat room")
def create_chat_room(
    payload: ChatRoomCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, payload.workspace_id)

    room = ChatRoom(
        workspace_id=payload.workspace_id,
        name=payload.name,
        type=payload.type,
        description=payload.description or None,
        created_by=identity.id,
    )
    db.add(room)
    db.flush()

    enrolled = {identity.id}
    db.add(ChatRoomMember(room_id=room.id, user_id=identity.id))
    for member_id in payload.member_ids:
        if member_id in enrolled:
            continue
        if workspace_role(db, payload.workspace_id, member_id) is None:
            # get_db rolls back the room and any enrolments made so far
            raise HTTPException(status_code=400, detail="User is not a member of this workspace")
        db.add(ChatRoomMember(room_id=room.id, user_id=member_id))
        enrolled.add(member_id)

    log_activity(
        db,
        workspace_id=payload.workspace_id,
        user_id=identity.id,
        action="chat_room_created",
        entity_type="chat_room",
        entity_id=room.id,
    )
    db.commit()

    return {"message": "Chat room created successfully", "roomId": room.id}
