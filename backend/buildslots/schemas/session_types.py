# backend/buildslots/schemas/session_types.py

from typing import Optional
from pydantic import BaseModel, Field


class SessionTypeCreate(BaseModel):
    builder_id: int
    title: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price: float = Field(0, ge=0)
    currency: str = "USD"
    is_active: bool = True

    model_config = {"from_attributes": True}


class SessionTypeUpdate(BaseModel):
    is_active: Optional[bool] = None
    title: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None

    model_config = {"from_attributes": True}


class SessionTypeRead(BaseModel):
    id: int
    builder_id: int
    title: str
    description: Optional[str] = None
    duration_minutes: int
    price: float
    currency: str
    is_active: bool

    model_config = {"from_attributes": True}
