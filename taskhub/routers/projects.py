from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, errors, query, schemas
from ..config import Settings, get_settings
from ..database import get_db
from ..models import Project

router = APIRouter(prefix="/api/project", tags=["projects"])

PROJECT_NOT_FOUND = "Proyecto no encontrado"


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.ProjectOut])
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.ProjectOut], include_in_schema=False)
def create_project(project: schemas.ProjectCreate, db: Session = Depends(get_db)):
    created = crud.create_project(db, project)
    return {"success": True, "data": schemas.ProjectOut.model_validate(created)}


@router.get("", response_model=schemas.PageEnvelope[schemas.ProjectOut])
@router.get("/", response_model=schemas.PageEnvelope[schemas.ProjectOut], include_in_schema=False)
def list_projects(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    owner: Optional[str] = None,
    client: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    list_query = query.project_list_query(
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        default_limit=settings.default_page_limit, max_limit=settings.max_page_limit,
        status=status_filter, owner=owner, client=client, search=search,
    )
    projects, total = crud.list_page(db, Project, list_query, crud.project_options())
    return {
        "success": True,
        "data": [schemas.ProjectOut.model_validate(p) for p in projects],
        "pagination": list_query.window.pagination(total),
    }


@router.get("/{project_id}", response_model=schemas.Envelope[schemas.ProjectOut])
def get_project(project_id: int, db: Session = Depends(get_db)):
    project = crud.get_project(db, project_id)
    if not project:
        raise errors.NotFoundError(PROJECT_NOT_FOUND)
    return {"success": True, "data": schemas.ProjectOut.model_validate(project)}


@router.put("/{project_id}", response_model=schemas.Envelope[schemas.ProjectOut])
def update_project(project_id: int, project: schemas.ProjectUpdate, db: Session = Depends(get_db)):
    updated = crud.update_project(db, project_id, project)
    if not updated:
        raise errors.NotFoundError(PROJECT_NOT_FOUND)
    return {"success": True, "data": schemas.ProjectOut.model_validate(updated)}


@router.delete("/{project_id}", response_model=schemas.MessageEnvelope)
def delete_project(project_id: int, db: Session = Depends(get_db)):
    if not crud.delete_project(db, project_id):
        raise errors.NotFoundError(PROJECT_NOT_FOUND)
    return {"success": True, "message": "Proyecto eliminado exitosamente"}


@router.get("/{project_id}/progress", response_model=schemas.Envelope[schemas.ProjectProgress])
def get_project_progress(project_id: int, db: Session = Depends(get_db)):
    if not crud.get_project(db, project_id):
        raise errors.NotFoundError(PROJECT_NOT_FOUND)
    return {"success": True, "data": crud.get_project_progress(db, project_id)}
