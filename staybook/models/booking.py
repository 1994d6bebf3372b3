"""
Booking model
"""

from sqlalchemy import Column, Integer, Date, ForeignKey, Enum, Numeric, CheckConstraint, Index
from sqlalchemy.orm import relationship
import enum

from staybook.models.base import BaseModel


class BookingStatus(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Booking(BaseModel):
    """
    Booking of a venue for the nights in [start_date, end_date)
    """
    __tablename__ = "bookings"

    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="RESTRICT"), nullable=False)
    # Nulled when the guest account is deleted so the history survives
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(
        Enum(BookingStatus),
        default=BookingStatus.CONFIRMED,
        nullable=False,
        index=True
    )
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    user = relationship("User", back_populates="bookings")
    venue = relationship("Venue", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="chk_bookings_valid_date_range"),
        CheckConstraint("total_price >= 0", name="chk_bookings_valid_total"),
        Index("ix_bookings_venue_status_dates", "venue_id", "status", "start_date", "end_date"),
    )

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, venue_id={self.venue_id}, status={self.status}, "
            f"{self.start_date}..{self.end_date}, total={self.total_price})>"
        )
