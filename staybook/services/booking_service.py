"""
Booking lifecycle: overlap checks, creation, date changes and cancellation
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staybook.config import settings
from staybook.core.database import transaction
from staybook.core.exceptions import (
    BookingOverlapError,
    ForbiddenError,
    NotFoundError,
    translate_storage_error,
)
from staybook.core.metrics import metrics_collector
from staybook.models.booking import Booking, BookingStatus
from staybook.models.venue import Venue
from staybook.services import pricing
from staybook.services.availability import confirmed_overlap_clause

logger = logging.getLogger(__name__)


class BookingService:
    """
    Enforces that no two CONFIRMED bookings of a venue share a night.

    Create and update run check-then-write inside one transaction at the
    configured isolation level, holding a row lock on the venue so that
    concurrent writers for the same venue are serialised.
    """

    def __init__(self, isolation_level: Optional[str] = None):
        self.isolation_level = isolation_level
        self.logger = logging.getLogger(__name__)

    async def has_overlap(
        self,
        db: AsyncSession,
        venue_id: int,
        start: date,
        end: date,
        exclude_booking_id: Optional[int] = None,
    ) -> bool:
        """
        True when a CONFIRMED booking of the venue intersects [start, end).
        ``exclude_booking_id`` leaves one booking out, so an update never
        conflicts with its own previous dates.
        """
        stmt = (
            select(Booking.id)
            .where(
                Booking.venue_id == venue_id,
                confirmed_overlap_clause(start, end),
            )
            .limit(1)
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)

        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def _lock_venue_price(self, db: AsyncSession, venue_id: int) -> Optional[Decimal]:
        stmt = (
            select(Venue.price_per_night)
            .where(Venue.id == venue_id)
            .with_for_update()
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_owned_booking(self, db: AsyncSession, user_id: int, booking_id: int) -> Booking:
        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        booking = result.scalar_one_or_none()

        if not booking:
            raise NotFoundError("Booking", booking_id)
        if booking.user_id != user_id:
            raise ForbiddenError("Booking belongs to another user")
        return booking

    async def create_booking(
        self,
        db: AsyncSession,
        user_id: int,
        venue_id: int,
        start: date,
        end: date,
    ) -> Booking:
        """
        Book [start, end) at the venue's current nightly price
        """
        async with metrics_collector.track_booking_operation("create"):
            night_count = pricing.nights(start, end)

            try:
                async with transaction(db, self.isolation_level):
                    price = await self._lock_venue_price(db, venue_id)
                    if price is None:
                        raise NotFoundError("Venue", venue_id)

                    if await self.has_overlap(db, venue_id, start, end):
                        raise BookingOverlapError(venue_id)

                    booking = Booking(
                        user_id=user_id,
                        venue_id=venue_id,
                        start_date=start,
                        end_date=end,
                        status=BookingStatus.CONFIRMED,
                        total_price=pricing.compute_total(night_count, price),
                    )
                    db.add(booking)
                    await db.flush()
            except DBAPIError as e:
                translated = translate_storage_error(e)
                if translated is None:
                    raise
                raise translated from e

            self.logger.info(
                f"Booking created: id={booking.id} venue={venue_id} user={user_id} "
                f"{start}..{end} nights={night_count} total={booking.total_price}"
            )
            return booking

    async def update_booking_dates(
        self,
        db: AsyncSession,
        user_id: int,
        booking_id: int,
        start: date,
        end: date,
    ) -> Booking:
        """
        Move a booking to [start, end), keeping the per-night rate it was
        originally charged
        """
        async with metrics_collector.track_booking_operation("update_dates"):
            try:
                async with transaction(db, self.isolation_level):
                    booking = await self._get_owned_booking(db, user_id, booking_id)
                    pricing.nights(start, end)

                    await self._lock_venue_price(db, booking.venue_id)
                    if await self.has_overlap(db, booking.venue_id, start, end, exclude_booking_id=booking.id):
                        raise BookingOverlapError(booking.venue_id)

                    new_total = pricing.relocked_total(
                        booking.start_date,
                        booking.end_date,
                        booking.total_price,
                        start,
                        end,
                        booking_id=booking.id,
                    )
                    booking.start_date = start
                    booking.end_date = end
                    booking.total_price = new_total
                    await db.flush()
            except DBAPIError as e:
                translated = translate_storage_error(e)
                if translated is None:
                    raise
                raise translated from e

            self.logger.info(f"Booking updated: id={booking.id} {start}..{end} total={booking.total_price}")
            return booking

    async def cancel_booking(self, db: AsyncSession, user_id: int, booking_id: int) -> Booking:
        """
        Mark a booking CANCELLED; dates and price are left untouched.
        Cancelling twice is a no-op.
        """
        async with metrics_collector.track_booking_operation("cancel"):
            async with transaction(db):
                booking = await self._get_owned_booking(db, user_id, booking_id)
                booking.status = BookingStatus.CANCELLED
                await db.flush()

            self.logger.info(f"Booking cancelled: id={booking.id} venue={booking.venue_id}")
            return booking

    async def list_user_bookings(self, db: AsyncSession, user_id: int) -> List[Booking]:
        """
        Caller's bookings, newest first, with venue title and city loaded
        """
        stmt = (
            select(Booking)
            .options(selectinload(Booking.venue).selectinload(Venue.address))
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        async with transaction(db):
            result = await db.execute(stmt)
            return list(result.scalars().all())


# Initialize production service
booking_service = BookingService(isolation_level=settings.BOOKING_ISOLATION_LEVEL)
