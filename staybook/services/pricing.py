"""
Night counting and booking price calculation
"""

import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from staybook.core.exceptions import InvalidDateRangeError, CorruptedBookingError

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 24 * 60 * 60
CURRENCY_MINOR_UNIT = Decimal("0.01")


def _day_span(start: DateLike, end: DateLike) -> int:
    """Ceiling of (end - start) in whole days; may be zero or negative."""
    if isinstance(start, datetime) or isinstance(end, datetime):
        delta = _as_datetime(end) - _as_datetime(start)
        return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
    return (end - start).days


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def nights(start: DateLike, end: DateLike) -> int:
    """
    Number of nights in the half-open range [start, end).

    Raises InvalidDateRangeError when end is not after start.
    """
    span = _day_span(start, end)
    if span <= 0:
        raise InvalidDateRangeError()
    return span


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CURRENCY_MINOR_UNIT, rounding=ROUND_HALF_UP)


def compute_total(night_count: int, rate_per_night: Union[Decimal, int, str]) -> Decimal:
    """nights * rate, rounded to the currency's minor unit"""
    return round_money(Decimal(night_count) * Decimal(rate_per_night))


def locked_rate(old_total: Union[Decimal, int, str], old_nights: int, booking_id: Optional[int] = None) -> Decimal:
    """
    Per-night rate a booking was originally charged, derived from its stored
    total and original night count. Left unrounded so re-applying it to the
    same duration reproduces the stored total.
    """
    if old_nights <= 0:
        raise CorruptedBookingError(booking_id=booking_id, nights=old_nights)
    return Decimal(old_total) / Decimal(old_nights)


def relocked_total(
    old_start: DateLike,
    old_end: DateLike,
    old_total: Union[Decimal, int, str],
    new_start: DateLike,
    new_end: DateLike,
    booking_id: Optional[int] = None,
) -> Decimal:
    """
    Total for a booking moved to [new_start, new_end), charged at the rate
    locked in when it was created. The venue's current price is never read.
    """
    new_nights = nights(new_start, new_end)
    rate = locked_rate(old_total, _day_span(old_start, old_end), booking_id=booking_id)
    return compute_total(new_nights, rate)
