# app/schemas/template.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.db.models.enums import ServiceCategory


class TemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: ServiceCategory
    description: str = Field(..., min_length=1)
    base_price: float = Field(default=0, ge=0)
    icon: Optional[str] = None


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[ServiceCategory] = None
    description: Optional[str] = Field(default=None, min_length=1)
    base_price: Optional[float] = Field(default=None, ge=0)
    icon: Optional[str] = None
    is_active: Optional[bool] = None


class TemplateResponse(BaseModel):
    id: int
    name: str
    category: str
    description: str
    base_price: float
    icon: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
