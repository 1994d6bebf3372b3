"""
Favourite venues per user
"""

import logging
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from staybook.core.database import transaction
from staybook.core.exceptions import NotFoundError, storage_error_kind, translate_storage_error
from staybook.models.favourite import Favourite
from staybook.models.venue import Venue

logger = logging.getLogger(__name__)


def to_favourite(favourite: Favourite) -> dict:
    venue = favourite.venue
    return {
        "venue_id": favourite.venue_id,
        "created_at": favourite.created_at,
        "venue": {
            "id": venue.id,
            "title": venue.title,
            "city": venue.address.city if venue.address else None,
            "album_id": venue.album_id,
            "rating": venue.rating,
            "capacity": venue.capacity,
            "price_per_night": venue.price_per_night,
        },
    }


class FavouriteService:

    async def add_favourite(self, db: AsyncSession, user_id: int, venue_id: int) -> None:
        """
        Adding a venue that is already a favourite is a no-op
        """
        try:
            async with transaction(db):
                if await db.get(Venue, venue_id) is None:
                    raise NotFoundError("Venue", venue_id)

                existing = await db.execute(
                    select(Favourite.id).where(
                        Favourite.user_id == user_id,
                        Favourite.venue_id == venue_id,
                    )
                )
                if existing.scalar_one_or_none() is not None:
                    return

                db.add(Favourite(user_id=user_id, venue_id=venue_id))
                await db.flush()
        except DBAPIError as e:
            # Lost a race with a concurrent add of the same pair
            if storage_error_kind(e) == "unique":
                return
            translated = translate_storage_error(e)
            if translated is None:
                raise
            raise translated from e

        logger.info(f"Favourite added: user={user_id} venue={venue_id}")

    async def remove_favourite(self, db: AsyncSession, user_id: int, venue_id: int) -> None:
        async with transaction(db):
            result = await db.execute(
                delete(Favourite)
                .where(Favourite.user_id == user_id, Favourite.venue_id == venue_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("Favourite", venue_id)

        logger.info(f"Favourite removed: user={user_id} venue={venue_id}")

    async def list_favourites(self, db: AsyncSession, user_id: int) -> List[dict]:
        """
        Favourites with a venue summary, most recently added first
        """
        stmt = (
            select(Favourite)
            .options(selectinload(Favourite.venue).selectinload(Venue.address))
            .where(Favourite.user_id == user_id)
            .order_by(Favourite.created_at.desc(), Favourite.id.desc())
        )
        async with transaction(db):
            favourites = (await db.execute(stmt)).scalars().all()
        return [to_favourite(favourite) for favourite in favourites]

    async def list_favourite_venue_ids(self, db: AsyncSession, user_id: int) -> List[int]:
        stmt = (
            select(Favourite.venue_id)
            .where(Favourite.user_id == user_id)
            .order_by(Favourite.venue_id)
        )
        async with transaction(db):
            return list((await db.execute(stmt)).scalars().all())


favourite_service = FavouriteService()
