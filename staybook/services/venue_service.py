"""
Venue listing, detail and host-side creation
"""

import logging
import re
import time
import unicodedata
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from staybook.core.database import transaction
from staybook.core.exceptions import InvalidDateRangeError, NotFoundError, translate_storage_error
from staybook.models.booking import Booking
from staybook.models.favourite import Favourite
from staybook.models.user import User
from staybook.models.venue import Address, Feature, Venue, VenueDetails, VenueFeature
from staybook.schemas.venue import VenueCreate
from staybook.services.availability import AvailabilityStatus, classify
from staybook.services.pricing import round_money
from staybook.services.venue_query import Pagination, VenueListParams, compose_venue_query

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    value = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    value = value.strip().lower().replace("&", " and ")
    value = re.sub(r"[^a-z0-9\s-]", " ", value)
    value = re.sub(r"[\s-]+", "-", value)
    return value.strip("-") or "venue"


def make_venue_slug(title: str) -> str:
    # Millisecond suffix keeps equal titles apart
    return f"{slugify(title)}-{int(time.time() * 1000)}"


def to_card(
    venue: Venue,
    is_favourite: bool = False,
    availability_status: AvailabilityStatus = AvailabilityStatus.UNKNOWN,
) -> dict:
    """Format venue for list responses"""
    address = venue.address
    return {
        "id": venue.id,
        "title": venue.title,
        "city": address.city if address else None,
        "postal_code": address.postal_code if address else None,
        "price_per_night": venue.price_per_night,
        "rating": venue.rating,
        "capacity": venue.capacity,
        "album_id": venue.album_id,
        "features": venue.feature_names,
        "is_favourite": is_favourite,
        "availability_status": availability_status,
    }


def to_detail(venue: Venue, is_favourite: bool = False) -> dict:
    """Format venue for the detail response"""
    detail = to_card(venue, is_favourite=is_favourite)
    address = venue.address
    details = venue.details
    detail.update({
        "slug": venue.slug,
        "description": venue.description,
        "host_id": venue.host_id,
        "address": {
            "street": address.street,
            "city": address.city,
            "country": address.country,
            "postal_code": address.postal_code,
        } if address else None,
        "number_of_reviews": details.number_of_reviews if details else 0,
        "sleeping_details": {
            "max_capacity": details.sleeping_max_capacity if details else None,
            "amount_of_beds": details.sleeping_beds if details else None,
        },
        "check_in_hour": details.check_in_hour if details else None,
        "check_out_hour": details.check_out_hour if details else None,
        "distance_from_city_center_km": details.distance_from_city_center_km if details else None,
        "contact_details": {
            "phone": details.contact_phone if details else None,
            "email": details.contact_email if details else None,
        },
        "created_at": venue.created_at,
        "updated_at": venue.updated_at,
    })
    return detail


def _venue_with_relations():
    return select(Venue).options(
        selectinload(Venue.address),
        selectinload(Venue.details),
        selectinload(Venue.venue_features).selectinload(VenueFeature.feature),
    )


class VenueService:
    """
    Read side of the marketplace plus venue creation for hosts
    """

    async def list_venues(
        self,
        db: AsyncSession,
        params: VenueListParams,
    ) -> Tuple[List[dict], int, Pagination]:
        """
        One page of venues matching ``params`` and the total match count.

        Count and page are read in the same transaction. Availability is
        informational: overlapping bookings label venues, they never hide them.
        """
        if params.has_date_range and params.end_date <= params.start_date:
            raise InvalidDateRangeError()

        query = compose_venue_query(params)
        pagination = query.pagination

        async with transaction(db):
            count_stmt = select(func.count(Venue.id))
            page_stmt = _venue_with_relations()
            if query.where is not None:
                count_stmt = count_stmt.where(query.where)
                page_stmt = page_stmt.where(query.where)
            page_stmt = (
                page_stmt
                .order_by(*query.order_by)
                .offset(pagination.offset)
                .limit(pagination.per_page)
            )

            total = (await db.execute(count_stmt)).scalar_one()
            venues = list((await db.execute(page_stmt)).scalars().all())

            venue_ids = [venue.id for venue in venues]
            overlapping = await self._overlapping_guests(db, venue_ids, query.overlap)
            favourites = await self._favourite_venue_ids(db, venue_ids, query.current_user_id)

        items = [
            to_card(
                venue,
                is_favourite=venue.id in favourites,
                availability_status=classify(
                    query.overlap is not None,
                    overlapping.get(venue.id),
                    query.current_user_id,
                ),
            )
            for venue in venues
        ]
        return items, total, pagination

    async def get_venue(self, db: AsyncSession, venue_id: int, current_user_id: Optional[int] = None) -> dict:
        async with transaction(db):
            result = await db.execute(_venue_with_relations().where(Venue.id == venue_id))
            venue = result.scalar_one_or_none()
            if not venue:
                raise NotFoundError("Venue", venue_id)
            favourites = await self._favourite_venue_ids(db, [venue.id], current_user_id)

        return to_detail(venue, is_favourite=venue.id in favourites)

    async def create_venue(self, db: AsyncSession, host_id: int, payload: VenueCreate) -> dict:
        """
        Create a venue with its address and features in one transaction.
        Feature rows are reused by exact name and created when missing.
        """
        try:
            async with transaction(db):
                host = await db.get(User, host_id)
                if not host:
                    raise NotFoundError("User", host_id)

                features = await self._upsert_features(db, payload.features)
                venue = Venue(
                    title=payload.title,
                    slug=make_venue_slug(payload.title),
                    description=payload.description,
                    price_per_night=round_money(Decimal(payload.price_per_night)),
                    capacity=payload.capacity,
                    album_id=payload.album_id,
                    rating=payload.rating,
                    host_id=host_id,
                    address=Address(
                        street=payload.street,
                        city=payload.city,
                        country=payload.country,
                        postal_code=payload.postal_code,
                    ),
                    venue_features=[VenueFeature(feature=feature) for feature in features],
                )
                if payload.details is not None:
                    venue.details = VenueDetails(**payload.details.model_dump())
                db.add(venue)
                await db.flush()
        except DBAPIError as e:
            translated = translate_storage_error(e, unique_message="Venue or feature already exists")
            if translated is None:
                raise
            raise translated from e

        logger.info(f"Venue created: id={venue.id} host={host_id} slug={venue.slug}")
        return to_card(venue)

    async def _upsert_features(self, db: AsyncSession, names: Sequence[str]) -> List[Feature]:
        wanted: List[str] = []
        for name in names:
            name = name.strip()
            if name and name not in wanted:
                wanted.append(name)
        if not wanted:
            return []

        result = await db.execute(select(Feature).where(Feature.name.in_(wanted)))
        existing = {feature.name: feature for feature in result.scalars().all()}

        features = []
        for name in wanted:
            feature = existing.get(name)
            if feature is None:
                feature = Feature(name=name)
                db.add(feature)
            features.append(feature)
        await db.flush()
        return features

    async def _overlapping_guests(
        self,
        db: AsyncSession,
        venue_ids: Sequence[int],
        overlap: Optional[ColumnElement],
    ) -> Dict[int, List[Optional[int]]]:
        if overlap is None or not venue_ids:
            return {}
        stmt = select(Booking.venue_id, Booking.user_id).where(
            Booking.venue_id.in_(venue_ids),
            overlap,
        )
        overlapping: Dict[int, List[Optional[int]]] = {}
        for venue_id, user_id in (await db.execute(stmt)).all():
            overlapping.setdefault(venue_id, []).append(user_id)
        return overlapping

    async def _favourite_venue_ids(
        self,
        db: AsyncSession,
        venue_ids: Sequence[int],
        user_id: Optional[int],
    ) -> Set[int]:
        if user_id is None or not venue_ids:
            return set()
        stmt = select(Favourite.venue_id).where(
            Favourite.user_id == user_id,
            Favourite.venue_id.in_(venue_ids),
        )
        return set((await db.execute(stmt)).scalars().all())


venue_service = VenueService()
