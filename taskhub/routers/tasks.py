from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, errors, query, schemas
from ..config import Settings, get_settings
from ..database import get_db
from ..models import Task

router = APIRouter(prefix="/api/task", tags=["tasks"])

TASK_NOT_FOUND = "Tarea no encontrada"


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.TaskOut])
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.TaskOut], include_in_schema=False)
def create_task(task: schemas.TaskCreate, db: Session = Depends(get_db)):
    created = crud.create_task(db, task)
    return {"success": True, "data": schemas.TaskOut.model_validate(created)}


@router.get("", response_model=schemas.PageEnvelope[schemas.TaskOut])
@router.get("/", response_model=schemas.PageEnvelope[schemas.TaskOut], include_in_schema=False)
def list_tasks(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    project: Optional[str] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    tags: Optional[str] = None,
    overdue: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    list_query = query.task_list_query(
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        default_limit=settings.default_page_limit, max_limit=settings.max_page_limit,
        project=project, assigned_to=assigned_to, status=status_filter, priority=priority,
        tags=tags, overdue=overdue, search=search,
    )
    tasks, total = crud.list_page(db, Task, list_query, crud.task_options())
    return {
        "success": True,
        "data": [schemas.TaskOut.model_validate(t) for t in tasks],
        "pagination": list_query.window.pagination(total),
    }


@router.get("/{task_id}", response_model=schemas.Envelope[schemas.TaskOut])
def get_task(task_id: int, db: Session = Depends(get_db)):
    task = crud.get_task(db, task_id)
    if not task:
        raise errors.NotFoundError(TASK_NOT_FOUND)
    return {"success": True, "data": schemas.TaskOut.model_validate(task)}


@router.put("/{task_id}", response_model=schemas.Envelope[schemas.TaskOut])
def update_task(task_id: int, task: schemas.TaskUpdate, db: Session = Depends(get_db)):
    updated = crud.update_task(db, task_id, task)
    if not updated:
        raise errors.NotFoundError(TASK_NOT_FOUND)
    return {"success": True, "data": schemas.TaskOut.model_validate(updated)}


@router.delete("/{task_id}", response_model=schemas.MessageEnvelope)
def delete_task(task_id: int, db: Session = Depends(get_db)):
    if not crud.delete_task(db, task_id):
        raise errors.NotFoundError(TASK_NOT_FOUND)
    return {"success": True, "message": "Tarea eliminada exitosamente"}


@router.post("/{task_id}/attachments", response_model=schemas.Envelope[schemas.TaskOut])
def add_attachment(task_id: int, attachment: schemas.AttachmentCreate, db: Session = Depends(get_db)):
    task = crud.add_attachment(db, task_id, attachment)
    if not task:
        raise errors.NotFoundError(TASK_NOT_FOUND)
    return {"success": True, "data": schemas.TaskOut.model_validate(task)}
