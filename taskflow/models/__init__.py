from taskflow.models.models import (
    ActivityLog,
    ChatRoom,
    ChatRoomMember,
    Message,
    Milestone,
    Project,
    Task,
    User,
    Workspace,
    WorkspaceMember,
)

__all__ = [
    "ActivityLog",
    "ChatRoom",
    "ChatRoomMember",
    "Message",
    "Milestone",
    "Project",
    "Task",
    "User",
    "Workspace",
    "WorkspaceMember",
]
