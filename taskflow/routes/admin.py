import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_
from sqlalchemy.orm import Session

from taskflow.core.db import get_db
from taskflow.core.errors import failure_message
from taskflow.core.security import generate_temporary_password, hash_password
from taskflow.core.tokens import Identity, require_identity
from taskflow.models import User, WorkspaceMember
from taskflow.schemas import EmployeeCreate
from taskflow.services.activity import log_activity
from taskflow.services.authz import load_workspace, require_app_admin

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.get("/employees")
@failure_message("Failed to fetch employees")
def list_employees(
    workspace_id: int | None = Query(default=None, alias="workspaceId"),
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_app_admin(db, identity)

    rows = (
        db.query(User, WorkspaceMember.role, WorkspaceMember.designation)
        .outerjoin(
            WorkspaceMember,
            and_(WorkspaceMember.user_id == User.id, WorkspaceMember.workspace_id == workspace_id),
        )
        .filter(User.is_active.is_(True))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return [
        {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "avatar_url": user.avatar_url,
            "role": user.role,
            "is_active": user.is_active,
            "created_at": user.created_at,
            "workspace_role": ws_role,
            "designation": designation,
        }
        for user, ws_role, designation in rows
    ]


@router.post("/employees", status_code=status.HTTP_201_CREATED)
@failure_message("Failed to create employee")
def create_employee(
    payload: EmployeeCreate,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    require_app_admin(db, identity)

    email = payload.email.lower().strip()
    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
    if payload.workspace_id is not None:
        load_workspace(db, payload.workspace_id)

    temporary_password = generate_temporary_password()
    user = User(
        email=email,
        password_hash=hash_password(temporary_password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role="employee",
    )
    db.add(user)
    db.flush()

    workspace_role = None
    if payload.workspace_id is not None:
        workspace_role = payload.workspace_role or "member"
        db.add(
            WorkspaceMember(
                workspace_id=payload.workspace_id,
                user_id=user.id,
                role=workspace_role,
                designation=payload.designation or None,
                invited_by=identity.id,
            )
        )
        log_activity(
            db,
            workspace_id=payload.workspace_id,
            user_id=identity.id,
            action="employee_created",
            entity_type="user",
            entity_id=user.id,
        )
    db.commit()
    logger.info("Employee %s created by %s", user.id, identity.id, extra={"user_id": identity.id})

    return {
        "message": "Employee created successfully",
        "employee": {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": user.role,
            "workspace_role": workspace_role,
            "temporary_password": temporary_password,
        },
    }
