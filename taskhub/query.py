"""Translation of list query-string parameters into store queries.

Every list endpoint goes through the same three steps: ``parse_pagination``
turns ``page``/``limit`` into a :class:`PageWindow`, ``parse_sort`` turns
``sortBy``/``sortOrder`` into ORDER BY clauses, and a per-resource builder
turns the remaining parameters into filter conditions. All of them raise
:class:`taskhub.errors.ValidationError` on malformed input.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from sqlalchemy import asc, desc, or_

from . import errors, models
from .models import Project, Task, TaskTag, User

PROJECT_SORT_FIELDS = {
    "name": Project.name,
    "status": Project.status,
    "client": Project.client,
    "createdAt": Project.created_at,
}

TASK_SORT_FIELDS = {
    "title": Task.title,
    "status": Task.status,
    "priority": Task.priority,
    "dueDate": Task.due_date,
    "createdAt": Task.created_at,
}

USER_SORT_FIELDS = {
    "name": User.name,
    "email": User.email,
    "createdAt": User.created_at,
}


@dataclass
class PageWindow:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def pages(self, total: int) -> int:
        return math.ceil(total / self.limit)

    def pagination(self, total: int) -> dict:
        return {"page": self.page, "limit": self.limit, "total": total, "pages": self.pages(total)}


@dataclass
class ListQuery:
    window: PageWindow
    order_by: list
    filters: list = field(default_factory=list)


def parse_int(name: str, raw: Optional[str], default: Optional[int] = None) -> Optional[int]:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise errors.ValidationError(f"{name} must be an integer, got {raw!r}")
    if not models.valid_id(value):
        raise errors.ValidationError(f"{name} is out of range")
    return value


def parse_pagination(page: Optional[str], limit: Optional[str], default_limit: int = 10, max_limit: int = 100) -> PageWindow:
    page_num = parse_int("page", page, 1)
    limit_num = parse_int("limit", limit, default_limit)
    if page_num < 1:
        raise errors.ValidationError("page must be greater than or equal to 1")
    if limit_num < 1:
        raise errors.ValidationError("limit must be greater than or equal to 1")
    if limit_num > max_limit:
        raise errors.ValidationError(f"limit must be less than or equal to {max_limit}")
    # skip has to fit the store's 64-bit OFFSET
    if (page_num - 1) * limit_num > models.MAX_ID:
        raise errors.ValidationError("page is out of range")
    return PageWindow(page=page_num, limit=limit_num)


def parse_sort(sort_by: Optional[str], sort_order: Optional[str], fields: Mapping, default_field: str,
               default_order: str = "desc", tiebreaker=None) -> list:
    """Single-field sort; ``asc`` is ascending and any other order is descending."""
    name = sort_by or default_field
    column = fields.get(name)
    if column is None:
        raise errors.ValidationError(f"sortBy must be one of: {', '.join(fields)}")
    direction = asc if (sort_order or default_order) == "asc" else desc
    clauses = [direction(column)]
    if tiebreaker is not None:
        clauses.append(direction(tiebreaker))
    return clauses


def contains(column, text: str):
    """Case-insensitive literal substring match."""
    return column.icontains(text, autoescape=True)


def project_filters(status: Optional[str] = None, owner: Optional[str] = None, client: Optional[str] = None,
                    search: Optional[str] = None) -> list:
    filters: Dict[str, object] = {}
    if status:
        filters["status"] = Project.status == status
    if owner:
        filters["owner"] = Project.owner_id == parse_int("owner", owner)
    if client:
        filters["client"] = contains(Project.client, client)
    if search:
        filters["search"] = or_(
            contains(Project.name, search),
            contains(Project.description, search),
            contains(Project.client, search),
        )
    return list(filters.values())


def split_tags(raw: str) -> List[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def task_filters(project: Optional[str] = None, assigned_to: Optional[str] = None, status: Optional[str] = None,
                 priority: Optional[str] = None, tags: Optional[str] = None, overdue: Optional[str] = None,
                 search: Optional[str] = None, now: Optional[datetime] = None) -> list:
    filters: Dict[str, object] = {}
    if project:
        filters["project"] = Task.project_id == parse_int("project", project)
    if assigned_to:
        filters["assignedTo"] = Task.assigned_to_id == parse_int("assignedTo", assigned_to)
    if status:
        filters["status"] = Task.status == status
    if priority:
        filters["priority"] = Task.priority == priority
    if tags:
        filters["tags"] = Task.tag_links.any(TaskTag.name.in_(split_tags(tags)))
    if overdue == "true":
        filters["dueDate"] = Task.due_date < (now or models.utcnow())
        # replaces a status filter from the same request
        filters["status"] = Task.status != "completed"
    if search:
        filters["search"] = or_(
            contains(Task.title, search),
            contains(Task.description, search),
            Task.tag_links.any(contains(TaskTag.name, search)),
        )
    return list(filters.values())


def user_filters(search: Optional[str] = None) -> list:
    if search:
        return [contains(User.name, search)]
    return []


def project_list_query(*, page=None, limit=None, sort_by=None, sort_order=None, default_limit=10, max_limit=100,
                       **params) -> ListQuery:
    return ListQuery(
        window=parse_pagination(page, limit, default_limit, max_limit),
        order_by=parse_sort(sort_by, sort_order, PROJECT_SORT_FIELDS, "createdAt", "desc", Project.id),
        filters=project_filters(**params),
    )


def task_list_query(*, page=None, limit=None, sort_by=None, sort_order=None, default_limit=10, max_limit=100,
                    **params) -> ListQuery:
    return ListQuery(
        window=parse_pagination(page, limit, default_limit, max_limit),
        order_by=parse_sort(sort_by, sort_order, TASK_SORT_FIELDS, "createdAt", "desc", Task.id),
        filters=task_filters(**params),
    )


def user_list_query(*, page=None, limit=None, sort_by=None, sort_order=None, default_limit=10, max_limit=100,
                    **params) -> ListQuery:
    return ListQuery(
        window=parse_pagination(page, limit, default_limit, max_limit),
        order_by=parse_sort(sort_by, sort_order, USER_SORT_FIELDS, "name", "asc", User.id),
        filters=user_filters(**params),
    )
