# backend/buildslots/routers/session_types.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import SessionTypes as DBSessionTypes
from ..schemas.session_types import (
    SessionTypeCreate,
    SessionTypeUpdate,
    SessionTypeRead,
)

router = APIRouter(prefix="/session_types", tags=["session_types"])


@router.get("/", response_model=list[SessionTypeRead])
def list_session_types(
    builder_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBSessionTypes).filter(DBSessionTypes.is_active == 1)
    if builder_id is not None:
        query = query.filter(DBSessionTypes.builder_id == builder_id)
    return query.all()


@router.get("/{id}", response_model=SessionTypeRead)
def get_session_type(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBSessionTypes, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=SessionTypeRead, status_code=status.HTTP_201_CREATED)
def create_session_type(
    data: SessionTypeCreate,
    db: Session = Depends(get_db),
):
    obj = DBSessionTypes(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=SessionTypeRead)
def update_session_type(
    id: int,
    data: SessionTypeUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBSessionTypes, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session_type(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBSessionTypes, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    obj.is_active = 0
    db.commit()
