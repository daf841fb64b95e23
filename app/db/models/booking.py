from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.base import Base
from app.db.models.enums import BookingStatus


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_bookings_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    total_price = Column(Float, nullable=False)

    status = Column(String, nullable=False, default=BookingStatus.PENDING.value)
    notes = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # relationships
    user = relationship("User", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")
    status_changes = relationship(
        "BookingStatusChange",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="BookingStatusChange.id",
    )


class BookingStatusChange(Base):
    """One row per applied status update: who moved the booking, from what, to what."""

    __tablename__ = "booking_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_kind = Column(String, nullable=False)

    from_status = Column(String, nullable=False)
    to_status = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking", back_populates="status_changes")
    actor = relationship("User", foreign_keys=[actor_id])
