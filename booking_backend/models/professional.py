"""Professional and weekly schedule model definitions."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, Time
from sqlalchemy.orm import relationship

from booking_backend.database import Base
from booking_backend.models.service import Service


professional_services = Table(
    "professional_services",
    Base.metadata,
    Column("professional_id", Integer, ForeignKey("professionals.id"), primary_key=True),
    Column("service_id", Integer, ForeignKey("services.id"), primary_key=True),
)


class Professional(Base):
    """Represents a staff member who can be booked."""
    __tablename__ = "professionals"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    custom_buffer = Column(Boolean, default=False)
    buffer_minutes = Column(Integer)

    schedules = relationship("ProfessionalSchedule", order_by="ProfessionalSchedule.day_of_week")
    services = relationship(Service, secondary=professional_services)


class ProfessionalSchedule(Base):
    """Weekly working hours for one weekday (0=Sunday ... 6=Saturday)."""
    __tablename__ = "professional_schedules"

    id = Column(Integer, primary_key=True)
    professional_id = Column(Integer, ForeignKey("professionals.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start = Column(Time)
    break_end = Column(Time)
    is_active = Column(Boolean, default=True)
