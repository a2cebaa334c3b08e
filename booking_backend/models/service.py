"""Service model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from booking_backend.database import Base


class Service(Base):
    """Represents a bookable service and how long it takes."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    name = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
