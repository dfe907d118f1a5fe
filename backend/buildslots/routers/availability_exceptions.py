# backend/buildslots/routers/availability_exceptions.py
# PATCH = 405, DELETE = ALLOWED (hard)

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import AvailabilityExceptions as DBAvailabilityExceptions
from ..schemas.availability_exceptions import (
    AvailabilityExceptionCreate,
    AvailabilityExceptionRead,
)

router = APIRouter(prefix="/availability_exceptions", tags=["availability_exceptions"])


@router.get("/", response_model=list[AvailabilityExceptionRead])
def list_availability_exceptions(
    builder_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBAvailabilityExceptions)
    if builder_id is not None:
        query = query.filter(DBAvailabilityExceptions.builder_id == builder_id)
    if start_date is not None:
        query = query.filter(DBAvailabilityExceptions.date >= start_date.isoformat())
    if end_date is not None:
        query = query.filter(DBAvailabilityExceptions.date <= end_date.isoformat())
    return query.order_by(DBAvailabilityExceptions.date).all()


@router.get("/{id}", response_model=AvailabilityExceptionRead)
def get_availability_exception(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAvailabilityExceptions, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "/", response_model=AvailabilityExceptionRead, status_code=status.HTTP_201_CREATED
)
def create_availability_exception(
    data: AvailabilityExceptionCreate,
    db: Session = Depends(get_db),
):
    obj = DBAvailabilityExceptions(**data.model_dump(mode="json"))
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_exception(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAvailabilityExceptions, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
