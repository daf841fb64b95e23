# app/api/routes/provider.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.permissions import Caller, get_caller
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.enums import BookingStatus, UserRole
from app.db.models.provider import ServiceProvider
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.provider import (
    ProviderApply,
    ProviderDashboardStats,
    ProviderProfileResponse,
    ProviderResponse,
    ProviderUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/provider", tags=["provider"])

ALREADY_PROVIDER = "You already have a provider profile"
PROFILE_NOT_FOUND = "Provider profile not found"

# Bookings that count towards revenue
REVENUE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


def _get_profile_or_404(db: Session, user_id: int) -> ServiceProvider:
    provider = db.query(ServiceProvider).filter(ServiceProvider.user_id == user_id).first()
    if not provider:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)
    return provider


@router.post("/apply", response_model=ProviderResponse, status_code=status.HTTP_201_CREATED)
def apply_as_provider(payload: ProviderApply, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    if caller.provider_id is not None:
        raise HTTPException(status_code=400, detail=ALREADY_PROVIDER)

    provider = ServiceProvider(
        user_id=caller.id,
        business_name=payload.business_name,
        description=payload.description,
        phone=payload.phone,
        address=payload.address,
        city=payload.city,
        is_verified=False,
    )
    db.add(provider)

    user = db.query(User).filter(User.id == caller.id).first()
    if user.role != UserRole.ADMIN.value:
        user.role = UserRole.SERVICE_PROVIDER.value

    # profile row and role change commit as one unit
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Concurrent provider application rejected for user {caller.id}")
        raise HTTPException(status_code=400, detail=ALREADY_PROVIDER)

    db.refresh(provider)
    logger.info(f"User {caller.id} became provider {provider.id}")
    return provider


@router.get("/profile", response_model=ProviderProfileResponse)
def get_profile(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    provider = (
        db.query(ServiceProvider)
        .options(selectinload(ServiceProvider.services))
        .filter(ServiceProvider.user_id == caller.id)
        .first()
    )
    if not provider:
        raise HTTPException(status_code=404, detail=PROFILE_NOT_FOUND)
    return provider


@router.put("/profile", response_model=ProviderResponse)
def update_profile(payload: ProviderUpdate, db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    provider = _get_profile_or_404(db, caller.id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if field == "business_name" and not value:
            continue
        setattr(provider, field, value)

    db.commit()
    db.refresh(provider)
    return provider


@router.get("/dashboard-stats", response_model=ProviderDashboardStats)
def dashboard_stats(db: Session = Depends(get_db), caller: Caller = Depends(get_caller)):
    provider = _get_profile_or_404(db, caller.id)

    total_services = db.query(func.count(Service.id)).filter(Service.provider_id == provider.id).scalar() or 0
    active_services = db.query(func.count(Service.id)).filter(
        Service.provider_id == provider.id, Service.is_active == True  # noqa: E712
    ).scalar() or 0

    bookings = db.query(Booking).join(Service, Booking.service_id == Service.id).filter(
        Service.provider_id == provider.id
    )
    total_bookings = bookings.with_entities(func.count(Booking.id)).scalar() or 0
    pending_bookings = bookings.filter(Booking.status == BookingStatus.PENDING.value).with_entities(
        func.count(Booking.id)
    ).scalar() or 0
    total_revenue = bookings.filter(Booking.status.in_(REVENUE_STATUSES)).with_entities(
        func.coalesce(func.sum(Booking.total_price), 0)
    ).scalar() or 0.0

    return ProviderDashboardStats(
        total_services=int(total_services),
        active_services=int(active_services),
        total_bookings=int(total_bookings),
        pending_bookings=int(pending_bookings),
        total_revenue=float(total_revenue),
    )
