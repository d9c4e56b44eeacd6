from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import User
from taskflow.schemas import ProfileUpdate, UserProfile, dump
from taskflow.services.activity import log_activity
from taskflow.services.authz import require_workspace_member

router = APIRouter(prefix="/users", tags=["users"])

MIN_QUERY_LENGTH = 2
SEARCH_LIMIT = 20


@router.get("/search")
@failure_message("Failed to search users")
def search_users(
    workspace_id: int = Query(alias="workspaceId"),
    q: str = Query(default=""),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)

    q = q.strip()
    if len(q) < MIN_QUERY_LENGTH:
        return []

    needle = q.lower()
    users = (
        db.query(User)
        .filter(
            User.is_active.is_(True),
            or_(
                func.lower(User.email).contains(needle, autoescape=True),
                func.lower(User.first_name).contains(needle, autoescape=True),
                func.lower(User.last_name).contains(needle, autoescape=True),
            ),
        )
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
    return [
        {
            "id": u.id,
            "email": u.email,
            "first_name": u.first_name,
            "last_name": u.last_name,
            "avatar_url": u.avatar_url,
            "role": u.role,
        }
        for u in users
    ]


@router.get("/profile")
@failure_message("Failed to fetch profile")
def get_profile(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == identity.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return dump(UserProfile, user)


@router.patch("/profile")
@failure_message("Failed to update profile")
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.id == identity.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    changes = payload.changes(exclude=())
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field, value in changes.items():
        setattr(user, field, value)

    log_activity(db, user_id=user.id, action="profile_updated", entity_type="user", entity_id=user.id)
    db.commit()

    return {"message": "Profile updated successfully"}
