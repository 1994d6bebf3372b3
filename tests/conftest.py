"""
Test configuration and fixtures
"""

import itertools
import os
from datetime import datetime, date
from decimal import Decimal
from typing import AsyncGenerator, Iterable, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["LOG_LEVEL"] = "WARNING"

from staybook.core.database import DatabaseManager
from staybook.core.security import create_access_token
from staybook.models import (
    Address,
    Booking,
    BookingStatus,
    Favourite,
    Feature,
    User,
    Venue,
    VenueDetails,
    VenueFeature,
)
from staybook.services.pricing import compute_total, nights

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """Fresh in-memory database per test; StaticPool keeps it on one connection"""
    manager = DatabaseManager(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await manager.init_models()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture
async def db_session(db_manager) -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.session() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def client(db_manager) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, sharing the test database"""
    from staybook.main import app

    app.state.db = db_manager
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def make_user(db_manager):
    counter = itertools.count(1)

    async def _make_user(
        name: str = "Test User",
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        with_address: bool = False,
    ) -> User:
        async with db_manager.session() as session:
            user = User(
                email=email or f"user{next(counter)}@example.com",
                name=name,
                password_hash="hashed-elsewhere",
                phone_number=phone_number,
            )
            if with_address:
                user.address = Address(street="Long Street 5", city="Gdansk", country="PL")
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_venue(db_manager):
    counter = itertools.count(1)

    async def _make_venue(
        host: User,
        title: Optional[str] = None,
        price: str = "100.00",
        capacity: int = 2,
        city: str = "Krakow",
        features: Iterable[str] = (),
        rating: Optional[float] = None,
        created_at: Optional[datetime] = None,
        details: Optional[dict] = None,
    ) -> Venue:
        number = next(counter)
        async with db_manager.session() as session:
            venue = Venue(
                title=title or f"Venue {number}",
                slug=f"venue-{number}",
                description="",
                price_per_night=Decimal(price),
                capacity=capacity,
                rating=rating,
                host_id=host.id,
                address=Address(street=f"Street {number}", city=city, country="PL", postal_code="00-001"),
            )
            if created_at is not None:
                venue.created_at = created_at
            if details is not None:
                venue.details = VenueDetails(**details)
            for name in features:
                result = await session.execute(select(Feature).where(Feature.name == name))
                feature = result.scalar_one_or_none() or Feature(name=name)
                venue.venue_features.append(VenueFeature(feature=feature))
            session.add(venue)
            await session.commit()
            return venue

    return _make_venue


@pytest.fixture
def make_booking(db_manager):

    async def _make_booking(
        user: Optional[User],
        venue: Venue,
        start: date,
        end: date,
        status: BookingStatus = BookingStatus.CONFIRMED,
        total_price: Optional[Decimal] = None,
    ) -> Booking:
        async with db_manager.session() as session:
            booking = Booking(
                user_id=user.id if user is not None else None,
                venue_id=venue.id,
                start_date=start,
                end_date=end,
                status=status,
                total_price=total_price if total_price is not None
                else compute_total(nights(start, end), venue.price_per_night),
            )
            session.add(booking)
            await session.commit()
            return booking

    return _make_booking


@pytest.fixture
def make_favourite(db_manager):

    async def _make_favourite(user: User, venue: Venue) -> Favourite:
        async with db_manager.session() as session:
            favourite = Favourite(user_id=user.id, venue_id=venue.id)
            session.add(favourite)
            await session.commit()
            return favourite

    return _make_favourite


@pytest.fixture
def auth_headers():

    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
