from datetime import date, datetime
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, model_validator

WorkspaceRole = Literal["admin", "manager", "member", "viewer"]
TaskStatus = Literal["todo", "in_progress", "in_review", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
RoomType = Literal["direct", "group", "channel"]

# surrounding whitespace is dropped before the length checks run
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
ShortName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]
ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=160)]
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
StatusText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]


class PatchModel(BaseModel):
    """Partial update body: only the fields the client sent are applied."""

    NON_NULLABLE: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self):
        for field in self.NON_NULLABLE:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} may not be null")
        return self

    def changes(self, exclude: tuple[str, ...] = ("id",)) -> dict:
        return self.model_dump(exclude_unset=True, exclude=set(exclude))


# auth

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: PersonName
    last_name: PersonName


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


# workspaces

class WorkspaceCreate(BaseModel):
    name: ShortName
    description: str | None = None


class WorkspaceMemberInvite(BaseModel):
    workspace_id: int
    user_id: int
    role: WorkspaceRole | None = None
    designation: str | None = None


# projects

class ProjectCreate(BaseModel):
    workspace_id: int
    name: ProjectName
    description: str | None = None
    color: str | None = None
    icon: str | None = None


class ProjectUpdate(PatchModel):
    NON_NULLABLE = ("name", "color", "icon", "status")

    id: int
    name: ProjectName | None = None
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    status: StatusText | None = None


class IdRequest(BaseModel):
    id: int


# milestones

class MilestoneCreate(BaseModel):
    workspace_id: int
    project_id: int
    title: Title
    due_date: date
    description: str | None = None
    status: StatusText | None = None
    progress_percentage: int | None = Field(default=None, ge=0, le=100)


class MilestoneUpdate(PatchModel):
    NON_NULLABLE = ("status", "progress_percentage", "title", "due_date")

    id: int
    status: StatusText | None = None
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    title: Title | None = None
    description: str | None = None
    due_date: date | None = None


# tasks

class TaskCreate(BaseModel):
    workspace_id: int
    title: Title
    project_id: int | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: int | None = None
    due_date: date | None = None


class TaskUpdate(PatchModel):
    NON_NULLABLE = ("title", "status", "priority")

    id: int
    title: Title | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: int | None = None
    due_date: date | None = None


# chat

class ChatRoomCreate(BaseModel):
    workspace_id: int
    name: ShortName
    type: RoomType
    description: str | None = None
    member_ids: list[int] = Field(default_factory=list)


class RoomMemberRequest(BaseModel):
    room_id: int
    user_id: int


class MessageCreate(BaseModel):
    room_id: int
    content: str = Field(min_length=1)
    message_type: str | None = None
    attachment_url: str | None = None


# users

class ProfileUpdate(PatchModel):
    NON_NULLABLE = ("first_name", "last_name")

    first_name: PersonName | None = None
    last_name: PersonName | None = None
    avatar_url: str | None = None
    phone: str | None = None
    bio: str | None = None


class EmployeeCreate(BaseModel):
    email: EmailStr
    first_name: PersonName
    last_name: PersonName
    workspace_id: int | None = None
    workspace_role: WorkspaceRole | None = None
    designation: str | None = None


# responses

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserSummary(ORMModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str


class UserProfile(UserSummary):
    avatar_url: str | None = None
    phone: str | None = None
    bio: str | None = None
    is_active: bool
    created_at: datetime


class WorkspaceOut(ORMModel):
    id: int
    owner_id: int
    name: str
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProjectOut(ORMModel):
    id: int
    workspace_id: int
    name: str
    description: str | None = None
    color: str
    icon: str
    owner_id: int
    status: str
    created_at: datetime
    updated_at: datetime


class MilestoneOut(ORMModel):
    id: int
    project_id: int
    workspace_id: int
    title: str
    description: str | None = None
    due_date: date
    status: str
    progress_percentage: int
    created_by: int
    created_at: datetime
    updated_at: datetime


class TaskOut(ORMModel):
    id: int
    workspace_id: int
    project_id: int | None = None
    title: str
    description: str | None = None
    status: str
    priority: str
    assignee_id: int | None = None
    due_date: date | None = None
    created_by: int
    created_at: datetime
    updated_at: datetime


class ChatRoomOut(ORMModel):
    id: int
    workspace_id: int
    name: str
    type: str
    description: str | None = None
    created_by: int
    is_archived: bool
    created_at: datetime


class MessageOut(ORMModel):
    id: int
    room_id: int
    sender_id: int
    content: str
    message_type: str
    attachment_url: str | None = None
    created_at: datetime


def dump(schema: type[ORMModel], obj, **extra) -> dict:
    return {**schema.model_validate(obj).model_dump(), **extra}
