# app/db/models/template.py
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class ServiceTemplate(Base):
    """Admin-curated starting point for provider listings."""

    __tablename__ = "service_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    base_price = Column(Float, nullable=False, default=0)
    icon = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    services = relationship("Service", back_populates="template")
