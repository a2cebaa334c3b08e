"""Business model definitions."""

from sqlalchemy import Column, Integer, String, JSON
from booking_backend.database import Base


class Business(Base):
    """Represents the tenant whose hours and booking settings drive availability."""
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    timezone = Column(String)
    # {"monday": {"open": "09:00", "close": "18:00", "closed": false}, ...}
    business_hours = Column(JSON, default=dict)
    # buffer_minutes, min_advance_hours, max_advance_days, allow_same_day, require_payment
    booking_settings = Column(JSON, default=dict)
