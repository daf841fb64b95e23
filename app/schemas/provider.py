# app/schemas/provider.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProviderApply(BaseModel):
    business_name: str = Field(..., min_length=1)
    description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None


class ProviderUpdate(BaseModel):
    business_name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None


class ProviderResponse(BaseModel):
    id: int
    user_id: int
    business_name: str
    description: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    is_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProviderServiceMini(BaseModel):
    id: int
    title: str
    category: str
    is_active: bool

    class Config:
        from_attributes = True


class ProviderProfileResponse(ProviderResponse):
    services: List[ProviderServiceMini] = []


class ProviderMini(BaseModel):
    id: int
    business_name: str
    phone: Optional[str] = None
    is_verified: bool

    class Config:
        from_attributes = True


class ProviderDashboardStats(BaseModel):
    total_services: int
    active_services: int
    total_bookings: int
    pending_bookings: int
    total_revenue: float
