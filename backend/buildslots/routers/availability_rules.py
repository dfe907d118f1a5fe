# backend/buildslots/routers/availability_rules.py
# PATCH = 405, DELETE = ALLOWED (hard)

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import AvailabilityRules as DBAvailabilityRules
from ..schemas.availability_rules import (
    AvailabilityRuleCreate,
    AvailabilityRuleRead,
)

router = APIRouter(prefix="/availability_rules", tags=["availability_rules"])


@router.get("/", response_model=list[AvailabilityRuleRead])
def list_availability_rules(
    builder_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBAvailabilityRules)
    if builder_id is not None:
        query = query.filter(DBAvailabilityRules.builder_id == builder_id)
    return query.order_by(DBAvailabilityRules.day_of_week, DBAvailabilityRules.start_time).all()


@router.get("/{id}", response_model=AvailabilityRuleRead)
def get_availability_rule(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAvailabilityRules, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "/", response_model=AvailabilityRuleRead, status_code=status.HTTP_201_CREATED
)
def create_availability_rule(
    data: AvailabilityRuleCreate,
    db: Session = Depends(get_db),
):
    obj = DBAvailabilityRules(**data.model_dump(mode="json"))
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
def delete_availability_rule(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBAvailabilityRules, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
