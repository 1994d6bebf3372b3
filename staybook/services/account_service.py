"""
User accounts: profile, phone number, creation and the deletion cascade
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staybook.core.database import transaction
from staybook.core.exceptions import (
    StaybookException,
    NotFoundError,
    ForeignKeyViolationError,
    InternalServerError,
    storage_error_kind,
    translate_storage_error,
)
from staybook.models.booking import Booking, BookingStatus
from staybook.models.favourite import Favourite
from staybook.models.user import User
from staybook.models.venue import Address, Venue, VenueDetails, VenueFeature


class AccountService:
    """
    Account operations. Deletion runs one transaction whose steps are
    ordered so every foreign key stays satisfiable:

    1. verify the user exists
    2. collect the user's venues and their address ids
    3. cancel, then delete, every booking at those venues
    4. delete the venues (with their details, feature links and favourites)
    5. delete the venues' addresses
    6. cancel the user's own guest bookings and detach them from the user
    7. delete the user's favourites
    8. delete the user
    9. delete the user's own address
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def get_profile(self, db: AsyncSession, user_id: int) -> User:
        stmt = select(User).options(selectinload(User.address)).where(User.id == user_id)
        async with transaction(db):
            user = (await db.execute(stmt)).scalar_one_or_none()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def create_user(
        self,
        db: AsyncSession,
        email: str,
        name: str,
        password_hash: str,
        phone_number: Optional[str] = None,
    ) -> User:
        """
        Persist a user whose credential has already been hashed.
        Entry point for account provisioning; this API has no signup route.
        """
        try:
            async with transaction(db):
                user = User(
                    email=email,
                    name=name,
                    password_hash=password_hash,
                    phone_number=phone_number,
                )
                db.add(user)
                await db.flush()
        except DBAPIError as e:
            translated = translate_storage_error(e, unique_message="User with that email already exists")
            if translated is None:
                raise
            raise translated from e
        return user

    async def update_phone(self, db: AsyncSession, user_id: int, phone_number: str) -> User:
        stmt = select(User).options(selectinload(User.address)).where(User.id == user_id)
        async with transaction(db):
            user = (await db.execute(stmt)).scalar_one_or_none()
            if not user:
                raise NotFoundError("User", user_id)
            user.phone_number = phone_number
            await db.flush()
        return user

    async def delete_account(self, db: AsyncSession, user_id: int) -> None:
        """
        Remove a user and everything that depends on them, all or nothing.

        Foreign key violations surface as ForeignKeyViolationError, any other
        unexpected failure as InternalServerError after logging. Domain
        errors such as NotFoundError pass through unchanged.
        """
        try:
            async with transaction(db):
                await self._run_cascade(db, user_id)
        except StaybookException:
            raise
        except DBAPIError as e:
            if storage_error_kind(e) == "foreign_key":
                self.logger.error(f"Account deletion for user {user_id} hit a foreign key violation: {e}")
                raise ForeignKeyViolationError(
                    "Account deletion violated a foreign key",
                    details={"user_id": user_id},
                ) from e
            self.logger.exception(f"Account deletion for user {user_id} failed")
            raise InternalServerError() from e
        except Exception as e:
            self.logger.exception(f"Account deletion for user {user_id} failed")
            raise InternalServerError() from e

        self.logger.info(f"Account deleted: user={user_id}")

    async def _run_cascade(self, db: AsyncSession, user_id: int) -> None:
        user_address_id = await self._verify_user(db, user_id)
        venue_ids, venue_address_ids = await self._collect_hosted_venues(db, user_id)

        if venue_ids:
            await self._remove_venue_bookings(db, venue_ids)
            await self._delete_venues(db, venue_ids)
            await self._delete_addresses(db, venue_address_ids)

        await self._detach_guest_bookings(db, user_id)
        await self._delete_favourites(db, user_id)
        await db.execute(delete(User).where(User.id == user_id))

        if user_address_id is not None:
            await self._delete_addresses(db, [user_address_id])

        self.logger.info(
            f"Deletion cascade for user {user_id}: venues={len(venue_ids)} addresses={len(venue_address_ids)}"
        )

    async def _verify_user(self, db: AsyncSession, user_id: int) -> Optional[int]:
        result = await db.execute(select(User.id, User.address_id).where(User.id == user_id))
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("User", user_id)
        return row.address_id

    async def _collect_hosted_venues(self, db: AsyncSession, user_id: int) -> Tuple[List[int], List[int]]:
        result = await db.execute(select(Venue.id, Venue.address_id).where(Venue.host_id == user_id))
        rows = result.all()
        venue_ids = [row.id for row in rows]
        address_ids = [row.address_id for row in rows if row.address_id is not None]
        return venue_ids, address_ids

    async def _remove_venue_bookings(self, db: AsyncSession, venue_ids: List[int]) -> None:
        # Bookings restrict venue deletion, so they go first
        await db.execute(
            update(Booking)
            .where(Booking.venue_id.in_(venue_ids))
            .values(status=BookingStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Booking)
            .where(Booking.venue_id.in_(venue_ids))
            .execution_options(synchronize_session=False)
        )

    async def _delete_venues(self, db: AsyncSession, venue_ids: List[int]) -> None:
        await db.execute(
            delete(VenueDetails)
            .where(VenueDetails.venue_id.in_(venue_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(VenueFeature)
            .where(VenueFeature.venue_id.in_(venue_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Favourite)
            .where(Favourite.venue_id.in_(venue_ids))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Venue)
            .where(Venue.id.in_(venue_ids))
            .execution_options(synchronize_session=False)
        )

    async def _delete_addresses(self, db: AsyncSession, address_ids: List[int]) -> None:
        if not address_ids:
            return
        await db.execute(
            delete(Address)
            .where(Address.id.in_(address_ids))
            .execution_options(synchronize_session=False)
        )

    async def _detach_guest_bookings(self, db: AsyncSession, user_id: int) -> None:
        # Kept for history, no longer linked to the account
        await db.execute(
            update(Booking)
            .where(Booking.user_id == user_id)
            .values(status=BookingStatus.CANCELLED, user_id=None)
            .execution_options(synchronize_session=False)
        )

    async def _delete_favourites(self, db: AsyncSession, user_id: int) -> None:
        await db.execute(
            delete(Favourite)
            .where(Favourite.user_id == user_id)
            .execution_options(synchronize_session=False)
        )


account_service = AccountService()
