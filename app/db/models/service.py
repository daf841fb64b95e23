# app/db/models/service.py

from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_services_capacity_positive"),
        CheckConstraint("booked_count >= 0", name="ck_services_booked_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Foreign keys
    provider_id = Column(Integer, ForeignKey("service_providers.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("service_templates.id", ondelete="SET NULL"), nullable=True)

    # Fixed at creation, selects the details table
    category = Column(String, nullable=False, index=True)

    # Basic details
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    location = Column(String, nullable=True)

    # Pricing
    base_price = Column(Float, nullable=False)

    # Seats
    capacity = Column(Integer, nullable=False, default=1)
    booked_count = Column(Integer, nullable=False, default=0)

    # Relative URLs under /uploads, in upload order
    images = Column(JSON, nullable=False, default=list)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    provider = relationship("ServiceProvider", back_populates="services")
    template = relationship("ServiceTemplate", back_populates="services")

    accommodation_details = relationship(
        "AccommodationDetails", uselist=False, back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )
    food_details = relationship(
        "FoodDetails", uselist=False, back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )
    travel_details = relationship(
        "TravelDetails", uselist=False, back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )
    laundry_details = relationship(
        "LaundryDetails", uselist=False, back_populates="service", cascade="all, delete-orphan", passive_deletes=True
    )

    bookings = relationship("Booking", back_populates="service", cascade="all, delete-orphan", passive_deletes=True)
    reviews = relationship(
        "Review",
        back_populates="service",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Review.created_at.desc()",
    )

    @property
    def details(self):
        return (
            self.accommodation_details
            or self.food_details
            or self.travel_details
            or self.laundry_details
        )

    @property
    def review_count(self) -> int:
        return len(self.reviews)

    @property
    def avg_rating(self):
        if not self.reviews:
            return None
        return sum(r.rating for r in self.reviews) / len(self.reviews)

    @property
    def available_seats(self) -> int:
        return max(0, (self.capacity or 0) - (self.booked_count or 0))
