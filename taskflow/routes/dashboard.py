from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Task, WorkspaceMember
from taskflow.services.authz import require_workspace_member

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

IN_PROGRESS_BUCKET = ("in_progress", "in_review")


def _count_when(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def workspace_stats(db: Session, workspace_id: int) -> dict:
    total, completed, in_progress, todo = (
        db.query(
            func.count(Task.id),
            _count_when(Task.status == "completed"),
            _count_when(Task.status.in_(IN_PROGRESS_BUCKET)),
            _count_when(Task.status == "todo"),
        )
        .filter(Task.workspace_id == workspace_id)
        .one()
    )
    members = (
        db.query(func.count(WorkspaceMember.id))
        .filter(WorkspaceMember.workspace_id == workspace_id, WorkspaceMember.is_active.is_(True))
        .scalar()
    )
    return {
        "total_tasks": int(total),
        "completed_tasks": int(completed),
        "in_progress_tasks": int(in_progress),
        "todo_tasks": int(todo),
        "team_members": int(members or 0),
    }


@router.get("/stats")
@failure_message("Failed to fetch stats")
def dashboard_stats(
    workspace_id: int = Query(alias="workspaceId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)
    return workspace_stats(db, workspace_id)
