from datetime import datetime, timezone
from typing import Annotated, ClassVar, Generic, List, Literal, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import MAX_ID

ProjectStatus = Literal["planning", "active", "on-hold", "completed", "cancelled"]
TaskStatus = Literal["todo", "in-progress", "review", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

T = TypeVar("T")

# reference to another row by primary key
RefId = Annotated[int, Field(ge=1, le=MAX_ID)]


class InputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid", str_strip_whitespace=True
    )


class UpdateModel(InputModel):
    """Body of a PUT: every field optional, but required ones cannot be set to null."""

    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def required_not_null(self):
        for name in self.required_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class OutputModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


# USERS

class UserCreate(InputModel):
    name: str = Field(min_length=1)
    email: EmailStr
    role: Optional[str] = None


class UserUpdate(UpdateModel):
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "email")

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[str] = None


class UserRef(OutputModel):
    id: int
    name: str


class UserOut(OutputModel):
    id: int
    name: str
    email: str
    role: Optional[str] = None
    created_at: datetime


# PROJECTS

class TeamMemberIn(InputModel):
    user: RefId
    role: str = "member"


class ProjectCreate(InputModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: ProjectStatus = "planning"
    owner: RefId
    team_members: List[TeamMemberIn] = []
    client: Optional[str] = None


class ProjectUpdate(UpdateModel):
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "status", "owner", "team_members")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    owner: Optional[RefId] = None
    team_members: Optional[List[TeamMemberIn]] = None
    client: Optional[str] = None


class TeamMemberOut(OutputModel):
    user: Optional[UserRef] = None
    role: Optional[str] = None


class ProjectRef(OutputModel):
    id: int
    name: str
    status: str


class ProjectOut(OutputModel):
    id: int
    name: str
    description: Optional[str] = None
    status: str
    owner: Optional[UserRef] = None
    team_members: List[TeamMemberOut] = []
    client: Optional[str] = None
    created_at: datetime


class ProjectProgress(OutputModel):
    total: int
    todo: int
    in_progress: int
    review: int
    completed: int
    progress: int


# TASKS

class TaskCreate(InputModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    project: RefId
    assigned_to: Optional[RefId] = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    due_date: Optional[datetime] = None
    tags: List[str] = []
    dependencies: List[RefId] = []

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return _as_utc_naive(value)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)


class TaskUpdate(UpdateModel):
    required_fields: ClassVar[Tuple[str, ...]] = ("title", "project", "status", "priority", "tags", "dependencies")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    project: Optional[RefId] = None
    assigned_to: Optional[RefId] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    dependencies: Optional[List[RefId]] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value):
        return _as_utc_naive(value)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value):
        return _clean_tags(value)


class AttachmentCreate(InputModel):
    filename: str = Field(min_length=1)
    url: str = Field(min_length=1)


class AttachmentOut(OutputModel):
    filename: str
    url: str
    uploaded_at: datetime


class TaskRef(OutputModel):
    id: int
    title: str
    status: str


class TaskOut(OutputModel):
    id: int
    title: str
    description: Optional[str] = None
    project: Optional[ProjectRef] = None
    assigned_to: Optional[UserRef] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    tags: List[str] = []
    dependencies: List[TaskRef] = []
    attachments: List[AttachmentOut] = []
    created_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tags_to_list(cls, value):
        return list(value or [])


# ENVELOPES

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class PageEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str
