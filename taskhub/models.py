from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import relationship

from .database import Base

PROJECT_STATUSES = ("planning", "active", "on-hold", "completed", "cancelled")
TASK_STATUSES = ("todo", "in-progress", "review", "completed")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")

# range of a 64-bit INTEGER primary key
MIN_ID = -(2 ** 63)
MAX_ID = 2 ** 63 - 1


def valid_id(value: int) -> bool:
    return MIN_ID <= value <= MAX_ID


def utcnow() -> datetime:
    # stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


task_dependencies = Table(
    "task_dependencies",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id"), primary_key=True),
    Column("depends_on_id", Integer, ForeignKey("tasks.id"), primary_key=True, index=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    description = Column(Text)
    status = Column(String, default="planning", nullable=False)
    client = Column(String)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    owner = relationship("User")
    team_members = relationship(
        "ProjectMember", back_populates="project", cascade="all, delete-orphan", order_by="ProjectMember.id"
    )
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")


class ProjectMember(Base):
    __tablename__ = "project_members"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String, default="member")

    project = relationship("Project", back_populates="team_members")
    user = relationship("User")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, default="todo", nullable=False, index=True)
    priority = Column(String, default="medium", nullable=False)
    due_date = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    project = relationship("Project", back_populates="tasks")
    assigned_to = relationship("User")
    dependencies = relationship(
        "Task",
        secondary=task_dependencies,
        primaryjoin=lambda: Task.id == task_dependencies.c.task_id,
        secondaryjoin=lambda: Task.id == task_dependencies.c.depends_on_id,
        order_by=lambda: Task.id,
    )
    tag_links = relationship("TaskTag", cascade="all, delete-orphan", order_by="TaskTag.id")
    attachments = relationship("TaskAttachment", cascade="all, delete-orphan", order_by="TaskAttachment.id")

    tags = association_proxy("tag_links", "name", creator=lambda name: TaskTag(name=name))


class TaskTag(Base):
    __tablename__ = "task_tags"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)


class TaskAttachment(Base):
    __tablename__ = "task_attachments"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    filename = Column(String, nullable=False)
    url = Column(String, nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)
