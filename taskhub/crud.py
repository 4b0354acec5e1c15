import logging
from typing import Iterable, List

from sqlalchemy import delete, func, or_
from sqlalchemy.orm import Session, selectinload

from . import errors, schemas
from .models import Project, ProjectMember, Task, TaskAttachment, User, task_dependencies, valid_id
from .query import ListQuery

logger = logging.getLogger(__name__)


def _get(db: Session, model, obj_id: int):
    # ids outside the key range cannot exist
    if not valid_id(obj_id):
        return None
    return db.get(model, obj_id)


def project_options():
    return (
        selectinload(Project.owner).load_only(User.id, User.name),
        selectinload(Project.team_members).selectinload(ProjectMember.user).load_only(User.id, User.name),
    )


def task_options():
    return (
        selectinload(Task.project).load_only(Project.id, Project.name, Project.status),
        selectinload(Task.assigned_to).load_only(User.id, User.name),
        selectinload(Task.dependencies),
        selectinload(Task.tag_links),
        selectinload(Task.attachments),
    )


def list_page(db: Session, model, list_query: ListQuery, options: Iterable = ()):
    q = db.query(model).filter(*list_query.filters)
    total = q.count()
    window = list_query.window
    items = q.options(*options).order_by(*list_query.order_by).offset(window.skip).limit(window.limit).all()
    return items, total


def _require_users(db: Session, user_ids: Iterable[int], field: str):
    wanted = set(user_ids)
    if not wanted:
        return
    found = {uid for (uid,) in db.query(User.id).filter(User.id.in_(wanted))}
    missing = sorted(wanted - found)
    if missing:
        raise errors.ValidationError(f"{field}: user {missing[0]} does not exist")


def _require_project(db: Session, project_id: int):
    if _get(db, Project, project_id) is None:
        raise errors.ValidationError(f"project: project {project_id} does not exist")


def _load_dependencies(db: Session, task_ids: List[int]) -> List[Task]:
    wanted = set(task_ids)
    tasks = db.query(Task).filter(Task.id.in_(wanted)).all() if wanted else []
    missing = sorted(wanted - {t.id for t in tasks})
    if missing:
        raise errors.ValidationError(f"dependencies: task {missing[0]} does not exist")
    return tasks


# USERS

def get_user(db: Session, user_id: int):
    return _get(db, User, user_id)


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate):
    db_user = User(name=user.name, email=user.email, role=user.role)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: int, user_update: schemas.UserUpdate):
    user = get_user(db, user_id)
    if not user:
        return None
    for field, value in user_update.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int):
    user = get_user(db, user_id)
    if not user:
        return False
    db.delete(user)
    db.commit()
    return True


def get_user_tasks(db: Session, user_id: int):
    return (
        db.query(Task)
        .options(*task_options())
        .filter(Task.assigned_to_id == user_id)
        .order_by(Task.due_date.asc(), Task.id.asc())
        .all()
    )


def get_user_projects(db: Session, user_id: int):
    return (
        db.query(Project)
        .options(*project_options())
        .filter(or_(Project.owner_id == user_id, Project.team_members.any(ProjectMember.user_id == user_id)))
        .order_by(Project.id.asc())
        .all()
    )


# PROJECTS

def _build_members(members: List[schemas.TeamMemberIn]) -> List[ProjectMember]:
    return [ProjectMember(user_id=m.user, role=m.role) for m in members]


def get_project(db: Session, project_id: int):
    if not valid_id(project_id):
        return None
    return db.query(Project).options(*project_options()).filter(Project.id == project_id).first()


def create_project(db: Session, project: schemas.ProjectCreate):
    _require_users(db, [project.owner], "owner")
    _require_users(db, [m.user for m in project.team_members], "teamMembers")
    db_project = Project(
        name=project.name,
        description=project.description,
        status=project.status,
        client=project.client,
        owner_id=project.owner,
        team_members=_build_members(project.team_members),
    )
    db.add(db_project)
    db.commit()
    return get_project(db, db_project.id)


def update_project(db: Session, project_id: int, project_update: schemas.ProjectUpdate):
    project = _get(db, Project, project_id)
    if not project:
        return None
    data = project_update.model_dump(exclude_unset=True)
    if "owner" in data:
        _require_users(db, [data["owner"]], "owner")
        project.owner_id = data.pop("owner")
    if "team_members" in data:
        data.pop("team_members")
        _require_users(db, [m.user for m in project_update.team_members], "teamMembers")
        project.team_members = _build_members(project_update.team_members)
    for field, value in data.items():
        setattr(project, field, value)
    db.commit()
    return get_project(db, project_id)


def delete_project(db: Session, project_id: int):
    project = _get(db, Project, project_id)
    if not project:
        return False
    task_ids = [tid for (tid,) in db.query(Task.id).filter(Task.project_id == project_id)]
    pruned = 0
    if task_ids:
        pruned = db.execute(
            delete(task_dependencies).where(task_dependencies.c.depends_on_id.in_(task_ids))
        ).rowcount
    # tasks go with the project through the relationship cascade
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s with %d tasks (%d dependency links pruned)", project_id, len(task_ids), pruned)
    return True


def completion_percent(completed: int, total: int) -> int:
    """round(100 * completed / total) with halves rounded up; 0 when there are no tasks."""
    if total == 0:
        return 0
    return (200 * completed + total) // (2 * total)


def get_project_progress(db: Session, project_id: int):
    counts = dict(
        db.query(Task.status, func.count(Task.id))
        .filter(Task.project_id == project_id)
        .group_by(Task.status)
        .all()
    )
    total = sum(counts.values())
    completed = counts.get("completed", 0)
    return schemas.ProjectProgress(
        total=total,
        todo=counts.get("todo", 0),
        in_progress=counts.get("in-progress", 0),
        review=counts.get("review", 0),
        completed=completed,
        progress=completion_percent(completed, total),
    )


# TASKS

def get_task(db: Session, task_id: int):
    if not valid_id(task_id):
        return None
    return db.query(Task).options(*task_options()).filter(Task.id == task_id).first()


def create_task(db: Session, task: schemas.TaskCreate):
    _require_project(db, task.project)
    if task.assigned_to is not None:
        _require_users(db, [task.assigned_to], "assignedTo")
    db_task = Task(
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        project_id=task.project,
        assigned_to_id=task.assigned_to,
        dependencies=_load_dependencies(db, task.dependencies),
    )
    db_task.tags = task.tags
    db.add(db_task)
    db.commit()
    return get_task(db, db_task.id)


def update_task(db: Session, task_id: int, task_update: schemas.TaskUpdate):
    task = _get(db, Task, task_id)
    if not task:
        return None
    data = task_update.model_dump(exclude_unset=True)
    if "project" in data:
        _require_project(db, data["project"])
        task.project_id = data.pop("project")
    if "assigned_to" in data:
        assigned_to = data.pop("assigned_to")
        if assigned_to is not None:
            _require_users(db, [assigned_to], "assignedTo")
        task.assigned_to_id = assigned_to
    if "dependencies" in data:
        dependency_ids = data.pop("dependencies")
        if task_id in dependency_ids:
            raise errors.ValidationError("dependencies: a task cannot depend on itself")
        task.dependencies = _load_dependencies(db, dependency_ids)
    if "tags" in data:
        task.tags = data.pop("tags")
    for field, value in data.items():
        setattr(task, field, value)
    db.commit()
    return get_task(db, task_id)


def delete_task(db: Session, task_id: int):
    task = _get(db, Task, task_id)
    if not task:
        return False
    pruned = db.execute(delete(task_dependencies).where(task_dependencies.c.depends_on_id == task_id)).rowcount
    db.delete(task)
    db.commit()
    logger.info("Deleted task %s (removed from %d dependency lists)", task_id, pruned)
    return True


def add_attachment(db: Session, task_id: int, attachment: schemas.AttachmentCreate):
    task = _get(db, Task, task_id)
    if not task:
        return None
    task.attachments.append(TaskAttachment(filename=attachment.filename, url=attachment.url))
    db.commit()
    return get_task(db, task_id)
