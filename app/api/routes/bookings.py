import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload

from app.core.booking_rules import TransitionError, check_transition, compute_total_price, holds_seats
from app.core.permissions import Caller, get_caller, require_provider_profile
from app.db.base import get_db
from app.db.models.booking import Booking, BookingStatusChange
from app.db.models.enums import BookingStatus
from app.db.models.service import Service
from app.schemas.booking import (
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
    BookingStatusChangeResponse,
    BookingStatusUpdate,
)
from app.utils.seats import release_seats, reserve_seats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _get_booking_or_404(db: Session, booking_id: int) -> Booking:
    booking = (
        db.query(Booking)
        .options(selectinload(Booking.service).selectinload(Service.provider), selectinload(Booking.user))
        .filter(Booking.id == booking_id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


# Any signed-in user creates a booking

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    service = db.query(Service).filter(Service.id == booking_in.service_id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    if not service.is_active:
        raise HTTPException(status_code=400, detail="Service is not available")

    start_date = _as_naive_utc(booking_in.start_date)
    end_date = _as_naive_utc(booking_in.end_date)
    if end_date is not None and end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    total_price = compute_total_price(
        service.category, service.base_price, start_date, end_date, booking_in.quantity
    )

    # seat reservation and booking row commit together
    if not reserve_seats(db, service.id, booking_in.quantity):
        db.rollback()
        available = service.available_seats
        raise HTTPException(
            status_code=400,
            detail=f"Only {available} seat(s) available. Please reduce your quantity.",
        )

    new_booking = Booking(
        user_id=caller.id,
        service_id=service.id,
        start_date=start_date,
        end_date=end_date,
        quantity=booking_in.quantity,
        total_price=total_price,
        status=BookingStatus.PENDING.value,
        notes=booking_in.notes,
    )
    db.add(new_booking)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Failed to create booking for service {service.id}")
        raise

    logger.info(
        f"User {caller.id} booked service {service.id} x{booking_in.quantity} "
        f"(booking {new_booking.id}, total {total_price})"
    )
    return _get_booking_or_404(db, new_booking.id)


# Renter's bookings

@router.get("/my-bookings", response_model=List[BookingResponse])
def my_bookings(
    status: Optional[BookingStatus] = Query(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    q = (
        db.query(Booking)
        .options(selectinload(Booking.service).selectinload(Service.provider))
        .filter(Booking.user_id == caller.id)
    )
    if status:
        q = q.filter(Booking.status == status.value)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


# Bookings against the caller's listings

@router.get("/provider-bookings", response_model=List[BookingResponse])
def provider_bookings(
    status: Optional[BookingStatus] = Query(None),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    if not caller.is_provider:
        raise HTTPException(status_code=403, detail="Forbidden: Provider access required")
    provider_id = require_provider_profile(caller)

    q = (
        db.query(Booking)
        .join(Service, Booking.service_id == Service.id)
        .options(selectinload(Booking.service), selectinload(Booking.user))
        .filter(Service.provider_id == provider_id)
    )
    if status:
        q = q.filter(Booking.status == status.value)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    payload: BookingStatusUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    booking = _get_booking_or_404(db, booking_id)

    actor = caller.actor_kind_for(booking)
    if actor is None:
        logger.warning(f"User {caller.id} denied status change on booking {booking_id}")
        raise HTTPException(status_code=403, detail="Not authorized")

    try:
        target = check_transition(booking.status, payload.status, actor)
    except TransitionError as e:
        if e.forbidden:
            logger.warning(f"{actor.value} {caller.id} denied {booking.status} -> {payload.status} on booking {booking_id}")
        raise HTTPException(status_code=403 if e.forbidden else 400, detail=e.message)

    previous = booking.status

    # seats follow the booking in and out of CANCELLED
    if not holds_seats(previous) and holds_seats(target.value):
        if not reserve_seats(db, booking.service_id, booking.quantity):
            db.rollback()
            raise HTTPException(status_code=400, detail="Not enough seats available to restore this booking")
    elif holds_seats(previous) and not holds_seats(target.value):
        release_seats(db, booking.service_id, booking.quantity)

    booking.status = target.value
    db.add(
        BookingStatusChange(
            booking_id=booking.id,
            actor_id=caller.id,
            actor_kind=actor.value,
            from_status=previous,
            to_status=target.value,
        )
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Failed to update status of booking {booking_id}")
        raise

    logger.info(f"{actor.value} {caller.id} moved booking {booking_id} {previous} -> {target.value}")
    return _get_booking_or_404(db, booking_id)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    booking = _get_booking_or_404(db, booking_id)
    if caller.actor_kind_for(booking) is None:
        raise HTTPException(status_code=403, detail="Not authorized")
    return booking


@router.get("/{booking_id}/history", response_model=List[BookingStatusChangeResponse])
def get_booking_history(
    booking_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    booking = _get_booking_or_404(db, booking_id)
    if caller.actor_kind_for(booking) is None:
        raise HTTPException(status_code=403, detail="Not authorized")
    return booking.status_changes
