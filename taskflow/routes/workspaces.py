from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Workspace, WorkspaceMember
from taskflow.schemas import WorkspaceCreate, WorkspaceOut, dump
from taskflow.services.activity import log_activity

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("")
@failure_message("Failed to fetch workspaces")
def list_workspaces(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    workspaces = (
        db.query(Workspace)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(
            WorkspaceMember.user_id == identity.id,
            WorkspaceMember.is_active.is_(True),
            Workspace.is_active.is_(True),
        )
        .order_by(Workspace.created_at.desc(), Workspace.id.desc())
        .all()
    )
    return [dump(WorkspaceOut, w) for w in workspaces]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create workspace")
def create_workspace(
    payload: WorkspaceCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    workspace = Workspace(
        owner_id=identity.id,
        name=payload.name,
        description=payload.description or None,
    )
    db.add(workspace)
    db.flush()

    db.add(WorkspaceMember(workspace_id=workspace.id, user_id=identity.id, role="admin"))
    log_activity(
        db,
        workspace_id=workspace.id,
        user_id=identity.id,
        action="workspace_created",
        entity_type="workspace",
        entity_id=workspace.id,
    )
    db.commit()
    db.refresh(workspace)

    return {"message": "Workspace created successfully", "workspace": dump(WorkspaceOut, workspace)}
