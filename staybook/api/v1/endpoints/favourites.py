"""
Favourite venue endpoints
"""

from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.core.database import get_session
from staybook.core.security import get_current_user_id
from staybook.schemas.favourite import FavouriteResponse, FavouriteAck
from staybook.services.favourite_service import favourite_service

router = APIRouter()


@router.get("/me", response_model=List[FavouriteResponse])
async def get_my_favourites(
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    return await favourite_service.list_favourites(db, user_id)


@router.get("/me/ids", response_model=List[int])
async def get_my_favourite_ids(
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Venue ids only, for marking cards client-side
    """
    return await favourite_service.list_favourite_venue_ids(db, user_id)


@router.post("/{venue_id}", response_model=FavouriteAck)
async def add_favourite(
    venue_id: int,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    await favourite_service.add_favourite(db, user_id, venue_id)
    return FavouriteAck()


@router.delete("/{venue_id}", response_model=FavouriteAck)
async def remove_favourite(
    venue_id: int,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    await favourite_service.remove_favourite(db, user_id, venue_id)
    return FavouriteAck()
