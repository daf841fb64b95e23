# app/schemas/service.py

from pydantic import BaseModel, Field, conint
from typing import List, Optional, Type
from datetime import datetime

from app.db.models.enums import ServiceCategory
from app.schemas.common import Pagination
from app.schemas.provider import ProviderMini


# --- Category details: create payloads (defaults applied when omitted) ---

class AccommodationDetailsCreate(BaseModel):
    property_type: str = "Apartment"
    bedrooms: conint(ge=0) = 1
    bathrooms: conint(ge=0) = 1
    max_guests: conint(ge=1) = 2
    amenities: List[str] = []
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None

    class Config:
        extra = "forbid"


class FoodDetailsCreate(BaseModel):
    cuisine_type: str = "Indian"
    meal_types: List[str] = []
    dietary_options: List[str] = []
    serving_size: Optional[str] = None
    delivery_available: bool = False
    preparation_time: Optional[conint(ge=0)] = None

    class Config:
        extra = "forbid"


class TravelDetailsCreate(BaseModel):
    vehicle_type: str = "Car"
    seating_capacity: conint(ge=1) = 4
    ac_available: bool = False
    fuel_included: bool = False
    driver_included: bool = False
    pickup_location: Optional[str] = None
    drop_location: Optional[str] = None

    class Config:
        extra = "forbid"


class LaundryDetailsCreate(BaseModel):
    service_types: List[str] = []
    price_per_kg: Optional[float] = Field(default=None, ge=0)
    price_per_piece: Optional[float] = Field(default=None, ge=0)
    express_available: bool = False
    pickup_available: bool = False
    delivery_available: bool = False

    class Config:
        extra = "forbid"


DETAILS_CREATE_SCHEMAS: dict[str, Type[BaseModel]] = {
    ServiceCategory.ACCOMMODATION.value: AccommodationDetailsCreate,
    ServiceCategory.FOOD.value: FoodDetailsCreate,
    ServiceCategory.TRAVEL.value: TravelDetailsCreate,
    ServiceCategory.LAUNDRY.value: LaundryDetailsCreate,
}


# --- Category details: responses ---

class AccommodationDetailsResponse(AccommodationDetailsCreate):
    id: int

    class Config:
        from_attributes = True
        extra = "ignore"


class FoodDetailsResponse(FoodDetailsCreate):
    id: int

    class Config:
        from_attributes = True
        extra = "ignore"


class TravelDetailsResponse(TravelDetailsCreate):
    id: int

    class Config:
        from_attributes = True
        extra = "ignore"


class LaundryDetailsResponse(LaundryDetailsCreate):
    id: int

    class Config:
        from_attributes = True
        extra = "ignore"


class ServiceDetailsMixin(BaseModel):
    # exactly one of these is set, matching the category
    accommodation_details: Optional[AccommodationDetailsResponse] = None
    food_details: Optional[FoodDetailsResponse] = None
    travel_details: Optional[TravelDetailsResponse] = None
    laundry_details: Optional[LaundryDetailsResponse] = None


# --- Service ---

class ServiceResponse(ServiceDetailsMixin):
    id: int
    provider_id: int
    template_id: Optional[int] = None
    category: str
    title: str
    description: Optional[str]
    location: Optional[str] = None
    base_price: float
    capacity: int
    booked_count: int
    images: List[str]
    is_active: bool
    created_at: datetime

    provider: Optional[ProviderMini] = None

    class Config:
        from_attributes = True


class ServiceListItem(ServiceResponse):
    avg_rating: Optional[float] = None
    review_count: int = 0


class ServiceListResponse(BaseModel):
    services: List[ServiceListItem]
    pagination: Pagination


class ReviewerMini(BaseModel):
    name: str
    image: Optional[str] = None

    class Config:
        from_attributes = True


class ServiceReviewItem(BaseModel):
    id: int
    user_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime
    user: Optional[ReviewerMini] = None

    class Config:
        from_attributes = True


class ServiceDetailResponse(ServiceListItem):
    reviews: List[ServiceReviewItem] = []
