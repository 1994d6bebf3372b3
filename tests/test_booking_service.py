"""
Booking lifecycle tests against a real database session
"""

import asyncio
import pytest
import pytest_asyncio
from datetime import date
from decimal import Decimal
from typing import List, Tuple

from prometheus_client import REGISTRY
from sqlalchemy import event, select, update

from staybook.core.exceptions import (
    BookingOverlapError,
    ForbiddenError,
    InvalidDateRangeError,
    NotFoundError,
)
from staybook.core.database import DatabaseManager
from staybook.models import Booking, BookingStatus, Venue
from staybook.services.booking_service import booking_service


def _operation_count(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "staybook_booking_operations_total",
        {"operation": operation, "outcome": outcome},
    )
    return value or 0.0


async def _reload(db_manager, booking_id: int) -> Booking:
    async with db_manager.session() as session:
        return await session.get(Booking, booking_id)


def ranges_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a < end_b and end_a > start_b


async def _confirmed_ranges(db_manager, venue_id: int) -> List[Tuple[date, date]]:
    async with db_manager.session() as session:
        result = await session.execute(
            select(Booking.start_date, Booking.end_date)
            .where(Booking.venue_id == venue_id, Booking.status == BookingStatus.CONFIRMED)
            .order_by(Booking.start_date)
        )
        return [(row.start_date, row.end_date) for row in result.all()]


def _use_immediate_transactions(engine) -> None:
    # SQLite has no row locks; IMMEDIATE takes the write lock at BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest_asyncio.fixture
async def host(make_user):
    return await make_user(name="Host")


@pytest_asyncio.fixture
async def guest(make_user):
    return await make_user(name="Guest")


@pytest_asyncio.fixture
async def venue(make_venue, host):
    return await make_venue(host, price="100.00")


@pytest.mark.integration
@pytest.mark.asyncio
class TestCreateBooking:
    """Test booking creation"""

    async def test_create_prices_nights_at_current_rate(self, db_session, db_manager, guest, venue):
        booking = await booking_service.create_booking(
            db_session, guest.id, venue.id, date(2024, 1, 1), date(2024, 1, 4)
        )

        assert booking.id is not None
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.total_price == Decimal("300.00")

        stored = await _reload(db_manager, booking.id)
        assert stored.user_id == guest.id
        assert stored.venue_id == venue.id
        assert stored.total_price == Decimal("300.00")

    async def test_invalid_range_is_rejected(self, db_session, guest, venue):
        with pytest.raises(InvalidDateRangeError):
            await booking_service.create_booking(
                db_session, guest.id, venue.id, date(2024, 1, 4), date(2024, 1, 4)
            )

    async def test_unknown_venue(self, db_session, guest):
        with pytest.raises(NotFoundError) as exc_info:
            await booking_service.create_booking(
                db_session, guest.id, 999, date(2024, 1, 1), date(2024, 1, 2)
            )
        assert exc_info.value.status_code == 404

    async def test_overlapping_confirmed_booking_blocks(self, db_session, guest, venue, make_user, make_booking):
        other = await make_user(name="Other")
        await make_booking(other, venue, date(2024, 1, 2), date(2024, 1, 5))
        before = _operation_count("create", "booking_overlap")

        with pytest.raises(BookingOverlapError) as exc_info:
            await booking_service.create_booking(
                db_session, guest.id, venue.id, date(2024, 1, 4), date(2024, 1, 6)
            )

        assert exc_info.value.status_code == 400
        assert _operation_count("create", "booking_overlap") == before + 1

    @pytest.mark.parametrize(
        "start, end",
        [
            (date(2024, 1, 2), date(2024, 1, 3)),  # inside
            (date(2023, 12, 30), date(2024, 1, 10)),  # enclosing
            (date(2024, 1, 1), date(2024, 1, 4)),  # identical
            (date(2023, 12, 31), date(2024, 1, 2)),  # overlaps the start
        ],
    )
    async def test_every_shared_night_blocks(self, db_session, guest, venue, make_booking, start, end):
        await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        with pytest.raises(BookingOverlapError):
            await booking_service.create_booking(db_session, guest.id, venue.id, start, end)

    async def test_back_to_back_stays_are_allowed(self, db_session, guest, venue, make_booking):
        await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        booking = await booking_service.create_booking(
            db_session, guest.id, venue.id, date(2024, 1, 4), date(2024, 1, 6)
        )
        assert booking.total_price == Decimal("200.00")

    async def test_cancelled_booking_does_not_block(self, db_session, guest, venue, make_booking):
        await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4), status=BookingStatus.CANCELLED)

        booking = await booking_service.create_booking(
            db_session, guest.id, venue.id, date(2024, 1, 2), date(2024, 1, 3)
        )
        assert booking.status == BookingStatus.CONFIRMED

    async def test_has_overlap_can_exclude_a_booking(self, db_session, guest, venue, make_booking):
        existing = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        assert await booking_service.has_overlap(db_session, venue.id, date(2024, 1, 3), date(2024, 1, 5))
        assert not await booking_service.has_overlap(
            db_session, venue.id, date(2024, 1, 3), date(2024, 1, 5), exclude_booking_id=existing.id
        )


@pytest.mark.integration
@pytest.mark.asyncio
class TestUpdateBookingDates:
    """Test date changes with the rate locked at creation"""

    async def test_host_price_change_does_not_reprice(self, db_session, db_manager, guest, venue):
        booking = await booking_service.create_booking(
            db_session, guest.id, venue.id, date(2024, 1, 1), date(2024, 1, 4)
        )
        async with db_manager.session() as session:
            await session.execute(
                update(Venue).where(Venue.id == venue.id).values(price_per_night=Decimal("150.00"))
            )
            await session.commit()

        updated = await booking_service.update_booking_dates(
            db_session, guest.id, booking.id, date(2024, 1, 1), date(2024, 1, 6)
        )

        assert updated.total_price == Decimal("500.00")
        stored = await _reload(db_manager, booking.id)
        assert stored.end_date == date(2024, 1, 6)
        assert stored.total_price == Decimal("500.00")

    async def test_same_dates_keep_total(self, db_session, guest, venue, make_booking):
        booking = await make_booking(
            guest, venue, date(2024, 3, 1), date(2024, 3, 4), total_price=Decimal("100.00")
        )

        updated = await booking_service.update_booking_dates(
            db_session, guest.id, booking.id, date(2024, 3, 1), date(2024, 3, 4)
        )
        assert updated.total_price == Decimal("100.00")

    async def test_booking_never_conflicts_with_itself(self, db_session, guest, venue, make_booking):
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        updated = await booking_service.update_booking_dates(
            db_session, guest.id, booking.id, date(2024, 1, 2), date(2024, 1, 5)
        )
        assert updated.start_date == date(2024, 1, 2)
        assert updated.total_price == Decimal("300.00")

    async def test_overlap_with_another_booking(self, db_session, db_manager, guest, venue, make_user, make_booking):
        other = await make_user(name="Other")
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))
        await make_booking(other, venue, date(2024, 1, 10), date(2024, 1, 12))

        with pytest.raises(BookingOverlapError):
            await booking_service.update_booking_dates(
                db_session, guest.id, booking.id, date(2024, 1, 9), date(2024, 1, 11)
            )

        stored = await _reload(db_manager, booking.id)
        assert stored.start_date == date(2024, 1, 1)
        assert stored.end_date == date(2024, 1, 4)

    async def test_invalid_range(self, db_session, guest, venue, make_booking):
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        with pytest.raises(InvalidDateRangeError):
            await booking_service.update_booking_dates(
                db_session, guest.id, booking.id, date(2024, 1, 8), date(2024, 1, 7)
            )

    async def test_only_owner_may_update(self, db_session, guest, venue, make_user, make_booking):
        intruder = await make_user(name="Intruder")
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        with pytest.raises(ForbiddenError):
            await booking_service.update_booking_dates(
                db_session, intruder.id, booking.id, date(2024, 1, 1), date(2024, 1, 2)
            )

    async def test_missing_booking(self, db_session, guest):
        with pytest.raises(NotFoundError):
            await booking_service.update_booking_dates(
                db_session, guest.id, 12345, date(2024, 1, 1), date(2024, 1, 2)
            )


@pytest.mark.integration
@pytest.mark.asyncio
class TestCancelAndList:

    async def test_cancel_keeps_dates_and_price(self, db_session, db_manager, guest, venue, make_booking):
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        cancelled = await booking_service.cancel_booking(db_session, guest.id, booking.id)
        assert cancelled.status == BookingStatus.CANCELLED

        # Second cancel is a no-op
        again = await booking_service.cancel_booking(db_session, guest.id, booking.id)
        assert again.status == BookingStatus.CANCELLED

        stored = await _reload(db_manager, booking.id)
        assert stored.status == BookingStatus.CANCELLED
        assert stored.start_date == date(2024, 1, 1)
        assert stored.end_date == date(2024, 1, 4)
        assert stored.total_price == Decimal("300.00")

    async def test_cancel_frees_the_dates(self, db_session, guest, venue, make_booking):
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))
        await booking_service.cancel_booking(db_session, guest.id, booking.id)

        assert not await booking_service.has_overlap(db_session, venue.id, date(2024, 1, 1), date(2024, 1, 4))

    async def test_only_owner_may_cancel(self, db_session, guest, venue, host, make_booking):
        booking = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))

        with pytest.raises(ForbiddenError):
            await booking_service.cancel_booking(db_session, host.id, booking.id)

    async def test_list_is_newest_first_with_venue_summary(self, db_session, guest, host, venue, make_venue, make_booking):
        second_venue = await make_venue(host, title="Sea View", city="Sopot")
        first = await make_booking(guest, venue, date(2024, 1, 1), date(2024, 1, 4))
        second = await make_booking(guest, second_venue, date(2024, 2, 1), date(2024, 2, 3))

        bookings = await booking_service.list_user_bookings(db_session, guest.id)

        assert [booking.id for booking in bookings] == [second.id, first.id]
        assert bookings[0].venue.title == "Sea View"
        assert bookings[0].venue.city == "Sopot"

    async def test_list_excludes_other_guests(self, db_session, guest, host, venue, make_booking):
        await make_booking(host, venue, date(2024, 1, 1), date(2024, 1, 4))

        assert await booking_service.list_user_bookings(db_session, guest.id) == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestCompetingWriters:
    """Concurrent writers for the same venue and nights, each on its own connection"""

    @pytest_asyncio.fixture
    async def db_manager(self, tmp_path):
        manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}")
        _use_immediate_transactions(manager.engine)
        await manager.init_models()
        yield manager
        await manager.dispose()

    async def _create(self, db_manager, user_id: int, venue_id: int, start: date, end: date):
        async with db_manager.session() as session:
            return await booking_service.create_booking(session, user_id, venue_id, start, end)

    async def _move(self, db_manager, user_id: int, booking_id: int, start: date, end: date):
        async with db_manager.session() as session:
            return await booking_service.update_booking_dates(session, user_id, booking_id, start, end)

    async def test_simultaneous_creates_only_one_wins(self, db_manager, guest, venue, make_user):
        rival = await make_user(name="Rival")

        results = await asyncio.gather(
            self._create(db_manager, guest.id, venue.id, date(2024, 5, 1), date(2024, 5, 4)),
            self._create(db_manager, rival.id, venue.id, date(2024, 5, 1), date(2024, 5, 4)),
            return_exceptions=True,
        )

        assert sorted(type(result).__name__ for result in results) == ["Booking", "BookingOverlapError"]
        assert await _confirmed_ranges(db_manager, venue.id) == [(date(2024, 5, 1), date(2024, 5, 4))]

    async def test_many_guests_racing_for_overlapping_nights(self, db_manager, venue, make_user):
        guests = [await make_user(name=f"Guest {i}") for i in range(5)]
        # every requested range shares 3 July with every other
        requests = [
            (date(2024, 7, 1), date(2024, 7, 4)),
            (date(2024, 7, 2), date(2024, 7, 5)),
            (date(2024, 7, 3), date(2024, 7, 6)),
            (date(2024, 7, 2), date(2024, 7, 4)),
            (date(2024, 7, 3), date(2024, 7, 4)),
        ]

        results = await asyncio.gather(
            *[
                self._create(db_manager, g.id, venue.id, start, end)
                for g, (start, end) in zip(guests, requests)
            ],
            return_exceptions=True,
        )

        winners = [result for result in results if isinstance(result, Booking)]
        losers = [result for result in results if isinstance(result, BookingOverlapError)]
        assert len(winners) == 1
        assert len(losers) == 4
        assert await _confirmed_ranges(db_manager, venue.id) == [(winners[0].start_date, winners[0].end_date)]

    async def test_update_racing_a_create_into_the_same_nights(self, db_manager, guest, venue, make_user, make_booking):
        rival = await make_user(name="Rival")
        existing = await make_booking(guest, venue, date(2024, 6, 10), date(2024, 6, 12))

        results = await asyncio.gather(
            self._move(db_manager, guest.id, existing.id, date(2024, 6, 1), date(2024, 6, 4)),
            self._create(db_manager, rival.id, venue.id, date(2024, 6, 2), date(2024, 6, 5)),
            return_exceptions=True,
        )

        assert sorted(type(result).__name__ for result in results) == ["Booking", "BookingOverlapError"]

        ranges = await _confirmed_ranges(db_manager, venue.id)
        assert len(ranges) == 2
        assert not ranges_overlap(*ranges[0], *ranges[1])
