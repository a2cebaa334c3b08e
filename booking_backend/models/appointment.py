"""Appointment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from booking_backend.database import Base


class Appointment(Base):
    """Represents a booked time range for one professional."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    client_id = Column(Integer)
    customer_name = Column(String)
    customer_phone = Column(String)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, default="pending")
    source = Column(String, default="manual")
    notes = Column(String)
    created_at = Column(DateTime, server_default=func.now())
    cancelled_at = Column(DateTime)
