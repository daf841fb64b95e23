# app/db/models/service_details.py
"""
Category-specific detail rows. Each Service owns exactly one of these,
chosen by Service.category when the service is created.
"""
from sqlalchemy import JSON, Boolean, Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class AccommodationDetails(Base):
    __tablename__ = "accommodation_details"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, unique=True)

    property_type = Column(String, nullable=False, default="Apartment")
    bedrooms = Column(Integer, nullable=False, default=1)
    bathrooms = Column(Integer, nullable=False, default=1)
    max_guests = Column(Integer, nullable=False, default=2)
    amenities = Column(JSON, nullable=False, default=list)
    check_in_time = Column(String, nullable=True)
    check_out_time = Column(String, nullable=True)

    service = relationship("Service", back_populates="accommodation_details")


class FoodDetails(Base):
    __tablename__ = "food_details"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, unique=True)

    cuisine_type = Column(String, nullable=False, default="Indian")
    meal_types = Column(JSON, nullable=False, default=list)
    dietary_options = Column(JSON, nullable=False, default=list)
    serving_size = Column(String, nullable=True)
    delivery_available = Column(Boolean, nullable=False, default=False)
    preparation_time = Column(Integer, nullable=True)  # minutes

    service = relationship("Service", back_populates="food_details")


class TravelDetails(Base):
    __tablename__ = "travel_details"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, unique=True)

    vehicle_type = Column(String, nullable=False, default="Car")
    seating_capacity = Column(Integer, nullable=False, default=4)
    ac_available = Column(Boolean, nullable=False, default=False)
    fuel_included = Column(Boolean, nullable=False, default=False)
    driver_included = Column(Boolean, nullable=False, default=False)
    pickup_location = Column(String, nullable=True)
    drop_location = Column(String, nullable=True)

    service = relationship("Service", back_populates="travel_details")


class LaundryDetails(Base):
    __tablename__ = "laundry_details"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, unique=True)

    service_types = Column(JSON, nullable=False, default=list)
    price_per_kg = Column(Float, nullable=True)
    price_per_piece = Column(Float, nullable=True)
    express_available = Column(Boolean, nullable=False, default=False)
    pickup_available = Column(Boolean, nullable=False, default=False)
    delivery_available = Column(Boolean, nullable=False, default=False)

    service = relationship("Service", back_populates="laundry_details")
