# app/utils/seats.py
from sqlalchemy.orm import Session

from app.core.booking_rules import holds_seats
from app.db.models.booking import Booking
from app.db.models.service import Service


def reserve_seats(db: Session, service_id: int, quantity: int) -> bool:
    """Atomically take `quantity` seats; False when the service cannot hold them."""
    updated = (
        db.query(Service)
        .filter(
            Service.id == service_id,
            Service.booked_count + quantity <= Service.capacity,
        )
        .update({Service.booked_count: Service.booked_count + quantity}, synchronize_session=False)
    )
    return updated == 1


def release_seats(db: Session, service_id: int, quantity: int) -> None:
    (
        db.query(Service)
        .filter(Service.id == service_id, Service.booked_count >= quantity)
        .update({Service.booked_count: Service.booked_count - quantity}, synchronize_session=False)
    )


def release_user_seats(db: Session, user_id: int) -> int:
    """Give back the seats held by a user's bookings. Returns the number of bookings released."""
    released = 0
    for booking in db.query(Booking).filter(Booking.user_id == user_id).all():
        if holds_seats(booking.status):
            release_seats(db, booking.service_id, booking.quantity)
            released += 1
    return released
