"""Time block model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from booking_backend.database import Base


class TimeBlock(Base):
    """Represents a vacation, holiday or other unavailable range.

    A null professional_id blocks the whole business.
    """
    __tablename__ = "time_blocks"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    professional_id = Column(Integer, ForeignKey("professionals.id"))
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    reason = Column(String)
    block_type = Column(String, default="personal")
