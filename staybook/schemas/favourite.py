"""
Favourite schemas
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal

from staybook.schemas.base import BaseSchema


class FavouriteVenue(BaseSchema):
    id: int
    title: str
    city: Optional[str] = None
    album_id: Optional[int] = None
    rating: Optional[float] = None
    capacity: int
    price_per_night: Decimal


class FavouriteResponse(BaseSchema):
    venue_id: int
    created_at: datetime
    venue: FavouriteVenue


class FavouriteAck(BaseSchema):
    ok: bool = True
