from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import User, WorkspaceMember
from taskflow.schemas import WorkspaceMemberInvite
from taskflow.services.activity import log_activity
from taskflow.services.authz import MANAGER_ROLES, require_workspace_member

router = APIRouter(prefix="/workspace-members", tags=["workspaces"])


@router.get("")
@failure_message("Failed to fetch workspace members")
def list_workspace_members(
    workspace_id: int = Query(alias="workspaceId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)

    rows = (
        db.query(WorkspaceMember, User)
        .join(User, User.id == WorkspaceMember.user_id)
        .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.is_active.is_(True))
        .order_by(WorkspaceMember.joined_at.desc(), WorkspaceMember.id.desc())
        .all()
    )
    return [
        {
            "id": member.id,
            "workspace_id": member.workspace_id,
            "user_id": member.user_id,
            "workspace_role": member.role,
            "designation": member.designation,
            "joined_at": member.joined_at,
            "is_active": member.is_active,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "avatar_url": user.avatar_url,
            "app_role": user.role,
        }
        for member, user in rows
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to add workspace member")
def invite_workspace_member(
    payload: WorkspaceMemberInvite,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, payload.workspace_id, roles=MANAGER_ROLES)

    if not db.query(User.id).filter(User.id == payload.user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    # Re-inviting updates the existing row instead of adding a second one.
    member = (
        db.query(WorkspaceMember)
        .filter(WorkspaceMember.workspace_id == payload.workspace_id, WorkspaceMember.user_id == payload.user_id)
        .first()
    )
    if member is None:
        member = WorkspaceMember(workspace_id=payload.workspace_id, user_id=payload.user_id)
        db.add(member)
    member.role = payload.role or "member"
    member.designation = payload.designation or None
    member.invited_by = identity.id
    member.is_active = True
    db.flush()

    log_activity(
        db,
        workspace_id=payload.workspace_id,
        user_id=identity.id,
        action="member_added",
        entity_type="workspace_member",
        entity_id=member.id,
    )
    db.commit()

    return {"message": "Member added successfully"}
