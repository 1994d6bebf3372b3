"""
Booking overlap predicates and venue availability classification
"""

import enum
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import and_
from sqlalchemy.sql.elements import ColumnElement

from staybook.models.booking import Booking, BookingStatus


class AvailabilityStatus(str, enum.Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    BOOKED = "booked"
    BOOKED_BY_ME = "booked_by_me"


def confirmed_overlap_clause(start: date, end: date) -> ColumnElement:
    """
    CONFIRMED bookings whose [start_date, end_date) intersects [start, end).
    Cancelled bookings never block.
    """
    return and_(
        Booking.status == BookingStatus.CONFIRMED,
        Booking.start_date < end,  # booking starts before requested end
        Booking.end_date > start,  # booking ends after requested start
    )


def classify(
    has_date_range: bool,
    overlapping_user_ids: Optional[Iterable[Optional[int]]],
    current_user_id: Optional[int] = None,
) -> AvailabilityStatus:
    """
    Availability label for one venue.

    ``overlapping_user_ids`` holds the guest id of every CONFIRMED booking
    overlapping the requested range (None for detached guests). The caller's
    own booking wins over any number of other bookings.
    """
    if not has_date_range:
        return AvailabilityStatus.UNKNOWN

    user_ids = list(overlapping_user_ids or [])
    if not user_ids:
        return AvailabilityStatus.AVAILABLE

    if current_user_id is not None and current_user_id in user_ids:
        return AvailabilityStatus.BOOKED_BY_ME
    return AvailabilityStatus.BOOKED
