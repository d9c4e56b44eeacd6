from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Milestone, Project, User
from taskflow.schemas import IdRequest, ProjectCreate, ProjectOut, ProjectUpdate, dump
from taskflow.services.activity import log_activity
from taskflow.services.authz import is_workspace_manager, require_workspace_member

router = APIRouter(prefix="/projects", tags=["projects"])

DEFAULT_COLOR = "#3B82F6"
DEFAULT_ICON = "folder"


def _load_manageable_project(db: Session, identity: Identity, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    require_workspace_member(db, identity, project.workspace_id)
    if project.owner_id != identity.id and not is_workspace_manager(db, identity, project.workspace_id):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return project


@router.get("")
@failure_message("Failed to fetch projects")
def list_projects(
    workspace_id: int = Query(alias="workspaceId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)

    rows = (
        db.query(Project, User.first_name, User.last_name)
        .outerjoin(User, User.id == Project.owner_id)
        .filter(Project.workspace_id == workspace_id, Project.status != "archived")
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )
    return [dump(ProjectOut, p, first_name=first, last_name=last) for p, first, last in rows]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create project")
def create_project(
    payload: ProjectCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, payload.workspace_id)

    name = payload.name
    project = Project(
        workspace_id=payload.workspace_id,
        name=name,
        description=payload.description or None,
        color=payload.color or DEFAULT_COLOR,
        icon=payload.icon or DEFAULT_ICON,
        owner_id=identity.id,
    )
    db.add(project)
    db.flush()

    db.add(
        Milestone(
            project_id=project.id,
            workspace_id=payload.workspace_id,
            title=f"Project Created: {name}",
            description="Auto-generated milestone upon project creation",
            due_date=date.today(),
            status="pending",
            progress_percentage=0,
            created_by=identity.id,
        )
    )
    log_activity(
        db,
        workspace_id=payload.workspace_id,
        user_id=identity.id,
        action="project_created",
        entity_type="project",
        entity_id=project.id,
    )
    db.commit()

    return {"message": "Project created successfully", "projectId": project.id}


@router.patch("")
@failure_message("Failed to update project")
def update_project(
    payload: ProjectUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    project = _load_manageable_project(db, identity, payload.id)

    changes = payload.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    for field, value in changes.items():
        setattr(project, field, value)

    log_activity(
        db,
        workspace_id=project.workspace_id,
        user_id=identity.id,
        action="project_updated",
        entity_type="project",
        entity_id=project.id,
    )
    db.commit()
    db.refresh(project)
    return {"message": "Project updated", "project": dump(ProjectOut, project)}


@router.delete("")
@failure_message("Failed to archive project")
def archive_project(
    payload: IdRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    project = _load_manageable_project(db, identity, payload.id)
    project.status = "archived"

    log_activity(
        db,
        workspace_id=project.workspace_id,
        user_id=identity.id,
        action="project_archived",
        entity_type="project",
        entity_id=project.id,
    )
    db.commit()
    return {"message": "Project archived"}
