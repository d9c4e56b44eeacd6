from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import Project, Task
from taskflow.schemas import TaskCreate, TaskOut, TaskStatus, TaskUpdate, dump
from taskflow.services.activity import log_activity
from taskflow.services.authz import CONTRIBUTOR_ROLES, require_workspace_member, workspace_role

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _check_references(db: Session, workspace_id: int, project_id: int | None, assignee_id: int | None) -> None:
    if project_id is not None:
        project = db.query(Project.id).filter(Project.id == project_id, Project.workspace_id == workspace_id).first()
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
    if assignee_id is not None and workspace_role(db, workspace_id, assignee_id) is None:
        raise HTTPException(status_code=400, detail="Assignee is not a member of this workspace")


@router.get("")
@failure_message("Failed to fetch tasks")
def list_tasks(
    workspace_id: int = Query(alias="workspaceId"),
    project_id: int | None = Query(default=None, alias="projectId"),
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, workspace_id)

    query = db.query(Task).filter(Task.workspace_id == workspace_id)
    if project_id:
        query = query.filter(Task.project_id == project_id)
    if status_filter:
        query = query.filter(Task.status == status_filter)
    return [dump(TaskOut, t) for t in query.order_by(Task.created_at.desc(), Task.id.desc()).all()]


@router.post("", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create task")
def create_task(
    payload: TaskCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_workspace_member(db, identity, payload.workspace_id, roles=CONTRIBUTOR_ROLES)
    _check_references(db, payload.workspace_id, payload.project_id, payload.assignee_id)

    task = Task(
        workspace_id=payload.workspace_id,
        project_id=payload.project_id,
        title=payload.title,
        description=payload.description or None,
        status=payload.status or "todo",
        priority=payload.priority or "medium",
        assignee_id=payload.assignee_id,
        due_date=payload.due_date,
        created_by=identity.id,
    )
    db.add(task)
    db.flush()

    log_activity(
        db,
        workspace_id=payload.workspace_id,
        user_id=identity.id,
        action="task_created",
        entity_type="task",
        entity_id=task.id,
    )
    db.commit()
    return {"message": "Task created", "taskId": task.id}


@router.patch("")
@failure_message("Failed to update task")
def update_task(
    payload: TaskUpdate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    task = db.query(Task).filter(Task.id == payload.id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    require_workspace_member(db, identity, task.workspace_id, roles=CONTRIBUTOR_ROLES)

    changes = payload.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    _check_references(db, task.workspace_id, None, changes.get("assignee_id"))
    for field, value in changes.items():
        setattr(task, field, value)

    log_activity(
        db,
        workspace_id=task.workspace_id,
        user_id=identity.id,
        action="task_updated",
        entity_type="task",
        entity_id=task.id,
    )
    db.commit()
    db.refresh(task)
    return {"message": "Task updated", "task": dump(TaskOut, task)}
