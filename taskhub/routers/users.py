from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, errors, query, schemas
from ..config import Settings, get_settings
from ..database import get_db
from ..models import User

router = APIRouter(prefix="/api/user", tags=["users"])

USER_NOT_FOUND = "Usuario no encontrado"


def _ensure_user(db: Session, user_id: int) -> User:
    user = crud.get_user(db, user_id)
    if not user:
        raise errors.NotFoundError(USER_NOT_FOUND)
    return user


@router.post("", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.UserOut])
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.Envelope[schemas.UserOut], include_in_schema=False)
def create_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, user.email):
        raise errors.ValidationError("Email already registered")
    created = crud.create_user(db, user)
    return {"success": True, "data": schemas.UserOut.model_validate(created)}


@router.get("", response_model=schemas.PageEnvelope[schemas.UserOut])
@router.get("/", response_model=schemas.PageEnvelope[schemas.UserOut], include_in_schema=False)
def list_users(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    list_query = query.user_list_query(
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
        default_limit=settings.default_page_limit, max_limit=settings.max_page_limit,
        search=search,
    )
    users, total = crud.list_page(db, User, list_query)
    return {
        "success": True,
        "data": [schemas.UserOut.model_validate(u) for u in users],
        "pagination": list_query.window.pagination(total),
    }


@router.get("/{user_id}", response_model=schemas.Envelope[schemas.UserOut])
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = _ensure_user(db, user_id)
    return {"success": True, "data": schemas.UserOut.model_validate(user)}


@router.put("/{user_id}", response_model=schemas.Envelope[schemas.UserOut])
def update_user(user_id: int, user: schemas.UserUpdate, db: Session = Depends(get_db)):
    if user.email is not None:
        existing = crud.get_user_by_email(db, user.email)
        if existing and existing.id != user_id:
            raise errors.ValidationError("Email already registered")
    updated = crud.update_user(db, user_id, user)
    if not updated:
        raise errors.NotFoundError(USER_NOT_FOUND)
    return {"success": True, "data": schemas.UserOut.model_validate(updated)}


@router.delete("/{user_id}", response_model=schemas.MessageEnvelope)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    if not crud.delete_user(db, user_id):
        raise errors.NotFoundError(USER_NOT_FOUND)
    return {"success": True, "message": "Usuario eliminado exitosamente"}


@router.get("/{user_id}/tasks", response_model=schemas.Envelope[List[schemas.TaskOut]])
def get_user_tasks(user_id: int, db: Session = Depends(get_db)):
    _ensure_user(db, user_id)
    tasks = crud.get_user_tasks(db, user_id)
    return {"success": True, "data": [schemas.TaskOut.model_validate(t) for t in tasks]}


@router.get("/{user_id}/projects", response_model=schemas.Envelope[List[schemas.ProjectOut]])
def get_user_projects(user_id: int, db: Session = Depends(get_db)):
    _ensure_user(db, user_id)
    projects = crud.get_user_projects(db, user_id)
    return {"success": True, "data": [schemas.ProjectOut.model_validate(p) for p in projects]}
