from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Message, User
from taskflow.schemas import MessageCreate, MessageOut, dump
from taskflow.services.authz import load_room, require_room_member

router = APIRouter(prefix="/messages", tags=["chat"])


def _with_sender(message: Message, sender: User) -> dict:
    return dump(
        MessageOut,
        message,
        first_name=sender.first_name,
        last_name=sender.last_name,
        avatar_url=sender.avatar_url,
    )


@router.get("")
@failure_message("Failed to fetch messages")
def list_messages(
    room_id: int = Query(alias="roomId"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    room = load_room(db, room_id)
    require_room_member(db, identity, room)

    # newest page first, then flipped so the client reads it top to bottom
    rows = (
        db.query(Message, User)
        .join(User, User.id == Message.sender_id)
        .filter(Message.room_id == room.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return [_with_sender(m, u) for m, u in reversed(rows)]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to send message")
def send_message(
    payload: MessageCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    room = load_room(db, payload.room_id)
    require_room_member(db, identity, room)

    message = Message(
        room_id=room.id,
        sender_id=identity.id,
        content=payload.content,
        message_type=payload.message_type or "text",
        attachment_url=payload.attachment_url or None,
    )
    db.add(message)
    db.commit()
    db.refresh(message)

    sender = db.query(User).filter(User.id == identity.id).first()
    return {"message": "Message sent successfully", "data": _with_sender(message, sender)}
