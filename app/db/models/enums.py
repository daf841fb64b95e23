# app/db/models/enums.py
import enum


class UserRole(str, enum.Enum):
    USER = "USER"
    SERVICE_PROVIDER = "SERVICE_PROVIDER"
    ADMIN = "ADMIN"


class ServiceCategory(str, enum.Enum):
    ACCOMMODATION = "ACCOMMODATION"
    FOOD = "FOOD"
    TRAVEL = "TRAVEL"
    LAUNDRY = "LAUNDRY"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
