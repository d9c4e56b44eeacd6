from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Milestone, Project, User
from taskflow.schemas import IdRequest, MilestoneCreate, MilestoneOut, MilestoneUpdate, dump
from taskflow.services.activity import log_activity
from taskflow.services.authz import MANAGER_ROLES, require_workspace_member

router = APIRouter(prefix="/milestones", tags=["milestones"])


def _load_milestone(db: Session, milestone_id: int) -> Milestone:
    milestone = db.query(Milestone).filter(Milestone.id == milestone_id).first()
    if not milestone:
        raise HTTPException(status_code=404, detail="Milestone not found")
    return milestone


@router.get("")
@failure_message("Failed to fetch milestones")
def list_milestones(
    workspace_id: int = Query(alias="workspaceId"),
    project_id: int | None = Query(default=None, alias="projectId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)

    query = (
        db.query(Milestone, Project.name, User.first_name, User.last_name)
        .outerjoin(Project, Project.id == Milestone.project_id)
        .outerjoin(User, User.id == Milestone.created_by)
        .filter(Milestone.workspace_id == workspace_id)
    )
    if project_id:
        query = query.filter(Milestone.project_id == project_id)

    rows = query.order_by(Milestone.due_date.desc(), Milestone.created_at.desc(), Milestone.id.desc()).all()
    return [
        dump(MilestoneOut, m, project_name=project_name, first_name=first, last_name=last)
        for m, project_name, first, last in rows
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create milestone")
def create_milestone(
    payload: MilestoneCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, payload.workspace_id, roles=MANAGER_ROLES)

    project = (
        db.query(Project)
        .filter(Project.id == payload.project_id, Project.workspace_id == payload.workspace_id)
        .first()
    )
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    milestone = Milestone(
        project_id=project.id,
        workspace_id=payload.workspace_id,
        title=payload.title,
        description=payload.description or None,
        due_date=payload.due_date,
        status=payload.status or "pending",
        progress_percentage=payload.progress_percentage if payload.progress_percentage is not None else 0,
        created_by=identity.id,
    )
    db.add(milestone)
    db.flush()

    log_activity(
        db,
        workspace_id=payload.workspace_id,
        user_id=identity.id,
        action="milestone_created",
        entity_type="milestone",
        entity_id=milestone.id,
    )
    db.commit()

    return {"message": "Milestone created", "milestoneId": milestone.id}


@router.patch("")
@failure_message("Failed to update milestone")
def update_milestone(
    payload: MilestoneUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    milestone = _load_milestone(db, payload.id)
    require_workspace_member(db, identity, milestone.workspace_id, roles=MANAGER_ROLES)

    # Status moves are caller-driven: any value, in any order.
    changes = payload.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field, value in changes.items():
        setattr(milestone, field, value)

    log_activity(
        db,
        workspace_id=milestone.workspace_id,
        user_id=identity.id,
        action="milestone_updated",
        entity_type="milestone",
        entity_id=milestone.id,
    )
    db.commit()
    return {"message": "Milestone updated"}


@router.delete("")
@failure_message("Failed to delete milestone")
def delete_milestone(
    payload: IdRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    milestone = _load_milestone(db, payload.id)
    workspace_id = milestone.workspace_id
    require_workspace_member(db, identity, workspace_id, roles=MANAGER_ROLES)

    db.delete(milestone)
    log_activity(
        db,
        workspace_id=workspace_id,
        user_id=identity.id,
        action="milestone_deleted",
        entity_type="milestone",
        entity_id=payload.id,
    )
    db.commit()
    return {"message": "Milestone deleted"}
