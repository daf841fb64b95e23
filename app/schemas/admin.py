# app/schemas/admin.py
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from app.schemas.common import Pagination


class UserProviderFlag(BaseModel):
    id: int
    is_verified: bool

    class Config:
        from_attributes = True


class UserListItem(BaseModel):
    id: int
    email: str
    name: str
    role: str
    created_at: Optional[datetime] = None
    service_provider: Optional[UserProviderFlag] = None

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserListItem]
    pagination: Pagination


class ProviderOwner(BaseModel):
    name: str
    email: str

    class Config:
        from_attributes = True


class ProviderListItem(BaseModel):
    id: int
    user_id: int
    business_name: str
    city: Optional[str]
    is_verified: bool
    created_at: datetime
    user: Optional[ProviderOwner] = None
    service_count: int = 0

    class Config:
        from_attributes = True


class ProviderListResponse(BaseModel):
    providers: List[ProviderListItem]
    pagination: Pagination


class VerifyProviderRequest(BaseModel):
    is_verified: bool


class RoleUpdateRequest(BaseModel):
    role: str


class RoleUpdateResponse(BaseModel):
    id: int
    role: str


class StatisticsOverview(BaseModel):
    total_users: int
    total_providers: int
    verified_providers: int
    total_services: int
    active_services: int
    total_bookings: int
    total_revenue: float


class CategoryCount(BaseModel):
    category: str
    count: int


class RecentBookingItem(BaseModel):
    id: int
    status: str
    total_price: float
    created_at: datetime
    user_name: Optional[str]
    service_title: Optional[str]


class StatisticsResponse(BaseModel):
    overview: StatisticsOverview
    users_by_role: Dict[str, int]
    bookings_by_status: Dict[str, int]
    services_by_category: List[CategoryCount]
    recent_bookings: List[RecentBookingItem]
