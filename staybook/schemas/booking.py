"""
Booking schemas
"""

from pydantic import ConfigDict, Field
from typing import Optional
from datetime import date
from decimal import Decimal

from staybook.schemas.base import BaseSchema, IDSchema, TimestampSchema
from staybook.models.booking import BookingStatus


class BookingDates(BaseSchema):
    """Date range of a stay; end_date is exclusive"""
    start_date: date
    end_date: date


class BookingCreate(BookingDates):
    """Booking creation schema"""
    venue_id: int = Field(..., ge=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "venue_id": 1,
                "start_date": "2024-01-01",
                "end_date": "2024-01-04"
            }
        }
    )


class BookingUpdate(BookingDates):
    """Booking date change schema"""


class BookingVenueSummary(BaseSchema):
    """Minimal venue info attached to a user's bookings"""
    id: int
    title: str
    city: Optional[str] = None


class BookingResponse(IDSchema, TimestampSchema):
    """Booking response schema"""
    venue_id: int
    user_id: Optional[int] = None
    start_date: date
    end_date: date
    status: BookingStatus
    total_price: Decimal


class BookingWithVenueResponse(BookingResponse):
    """Booking with its venue summary"""
    venue: BookingVenueSummary
