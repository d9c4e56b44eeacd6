"""Authorization resolution.

Two independent axes decide what a caller may do:

* the application role stored on the user (``admin`` / ``manager`` / ``employee``);
* the role of the caller's *active* membership in the workspace the request
  targets (``admin`` / ``manager`` / ``member`` / ``viewer``).

An application admin passes every workspace check. Otherwise the workspace
membership is authoritative: an application ``manager`` with no membership
row is rejected, and a workspace ``admin`` gains nothing outside its
workspace. Missing workspaces/rooms are reported as 404 before any role
is looked at.
"""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskflow.core.tokens import Identity
from taskflow.models import ChatRoom, ChatRoomMember, User, Workspace, WorkspaceMember

MANAGER_ROLES = frozenset({"admin", "manager"})
CONTRIBUTOR_ROLES = frozenset({"admin", "manager", "member"})


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def is_app_admin(identity: Identity) -> bool:
    return identity.is_app_admin


def workspace_role(db: Session, workspace_id: int, user_id: int) -> str | None:
    membership = (
        db.query(WorkspaceMember)
        .filter(
            WorkspaceMember.workspace_id == workspace_id,
            WorkspaceMember.user_id == user_id,
            WorkspaceMember.is_active.is_(True),
        )
        .first()
    )
    return membership.role if membership else None


def load_workspace(db: Session, workspace_id: int) -> Workspace:
    workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
    if not workspace:
        raise _not_found("Workspace not found")
    return workspace


def require_workspace_member(
    db: Session,
    identity: Identity,
    workspace_id: int,
    roles: frozenset[str] | set[str] | None = None,
) -> str:
    """Return the caller's effective workspace role or raise 404/403.

    ``roles`` restricts which stored roles pass; ``None`` accepts any active
    membership. Application admins are reported as ``admin``.
    """
    load_workspace(db, workspace_id)
    if is_app_admin(identity):
        return "admin"

    role = workspace_role(db, workspace_id, identity.id)
    if role is None:
        raise _forbidden("Not a member of this workspace")
    if roles is not None and role not in roles:
        raise _forbidden("Insufficient permissions")
    return role


def is_workspace_manager(db: Session, identity: Identity, workspace_id: int) -> bool:
    if is_app_admin(identity):
        return True
    return workspace_role(db, workspace_id, identity.id) in MANAGER_ROLES


def require_app_admin(db: Session, identity: Identity) -> User:
    # Re-read the role: a token minted before a demotion must not keep admin rights.
    user = db.query(User).filter(User.id == identity.id, User.is_active.is_(True)).first()
    if not user or user.role != "admin":
        raise _forbidden("Admin access required")
    return user


def load_room(db: Session, room_id: int) -> ChatRoom:
    room = db.query(ChatRoom).filter(ChatRoom.id == room_id).first()
    if not room:
        raise _not_found("Room not found")
    return room


def is_room_member(db: Session, room_id: int, user_id: int) -> bool:
    return (
        db.query(ChatRoomMember.id)
        .filter(ChatRoomMember.room_id == room_id, ChatRoomMember.user_id == user_id)
        .first()
        is not None
    )


def require_room_member(db: Session, identity: Identity, room: ChatRoom) -> None:
    if not is_room_member(db, room.id, identity.id):
        raise _forbidden("Not a member of this room")


def can_manage_room(db: Session, identity: Identity, room: ChatRoom) -> bool:
    return is_workspace_manager(db, identity, room.workspace_id) or room.created_by == identity.id


def require_room_manager(db: Session, identity: Identity, room: ChatRoom) -> None:
    if not can_manage_room(db, identity, room):
        raise _forbidden("Not allowed to manage room members")
