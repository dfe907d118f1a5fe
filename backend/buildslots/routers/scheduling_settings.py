# backend/buildslots/routers/scheduling_settings.py
# GET returns defaults when unset, PUT = upsert

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import SchedulingSettings as DBSchedulingSettings
from ..schemas.scheduling_settings import (
    SchedulingSettingsRead,
    SchedulingSettingsUpdate,
)
from ..services.slots import get_booking_config, load_scheduling_settings
from ..services.slots.config import to_db_timestamp

router = APIRouter(prefix="/scheduling_settings", tags=["scheduling_settings"])


@router.get("/{builder_id}", response_model=SchedulingSettingsRead)
def get_scheduling_settings(builder_id: int, db: Session = Depends(get_db)):
    current = load_scheduling_settings(db, builder_id, get_booking_config())
    return SchedulingSettingsRead(
        builder_id=builder_id,
        timezone=current.timezone,
        min_notice_minutes=current.min_notice_minutes,
        max_advance_days=current.max_advance_days,
        buffer_minutes=current.buffer_minutes,
        is_accepting_bookings=current.is_accepting_bookings,
    )


@router.put("/{builder_id}", response_model=SchedulingSettingsRead)
def put_scheduling_settings(
    builder_id: int,
    data: SchedulingSettingsUpdate,
    db: Session = Depends(get_db),
):
    obj = (
        db.query(DBSchedulingSettings)
        .filter(DBSchedulingSettings.builder_id == builder_id)
        .first()
    )
    if obj is None:
        obj = DBSchedulingSettings(builder_id=builder_id)
        db.add(obj)

    for field, value in data.model_dump().items():
        setattr(obj, field, value)
    obj.updated_at = to_db_timestamp(datetime.now(timezone.utc))

    db.commit()
    db.refresh(obj)
    return obj
