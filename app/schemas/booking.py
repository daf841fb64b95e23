from pydantic import BaseModel, Field, conint
from datetime import datetime
from typing import List, Optional

from app.schemas.provider import ProviderMini
from app.schemas.service import ServiceDetailsMixin
from app.schemas.user import UserMini


# --- CREATE ---
# Price is never taken from the client; unknown fields such as total_price are ignored.
class BookingCreate(BaseModel):
    service_id: int
    start_date: datetime
    end_date: Optional[datetime] = None
    quantity: conint(ge=1) = 1
    notes: Optional[str] = None


# --- UPDATE (renter, provider or admin) ---
class BookingStatusUpdate(BaseModel):
    status: str = Field(
        ...,
        description="Allowed values: PENDING, CONFIRMED, CANCELLED, COMPLETED"
    )


# --- RESPONSE ---
class BookingServiceInfo(BaseModel):
    id: int
    title: str
    category: str
    images: List[str] = []
    provider: Optional[ProviderMini] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    id: int
    user_id: int
    service_id: int
    start_date: datetime
    end_date: Optional[datetime]
    quantity: int
    total_price: float
    status: str
    notes: Optional[str]
    created_at: datetime

    service: Optional[BookingServiceInfo] = None
    user: Optional[UserMini] = None

    class Config:
        from_attributes = True


class BookingServiceDetail(BookingServiceInfo, ServiceDetailsMixin):
    description: Optional[str] = None
    base_price: float
    location: Optional[str] = None


class BookingDetailResponse(BookingResponse):
    service: Optional[BookingServiceDetail] = None


class BookingStatusChangeResponse(BaseModel):
    id: int
    booking_id: int
    actor_id: Optional[int]
    actor_kind: str
    from_status: str
    to_status: str
    created_at: datetime

    class Config:
        from_attributes = True
