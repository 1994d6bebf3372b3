"""
Booking endpoints
"""

from typing import Any, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.core.database import get_session
from staybook.core.security import get_current_user_id
from staybook.schemas.booking import (
    BookingCreate,
    BookingUpdate,
    BookingResponse,
    BookingWithVenueResponse,
)
from staybook.services.booking_service import booking_service

router = APIRouter()


@router.get("/me", response_model=List[BookingWithVenueResponse])
async def get_my_bookings(
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Get the caller's bookings, newest first
    """
    return await booking_service.list_user_bookings(db, user_id)


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_in: BookingCreate,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Book a venue for [start_date, end_date)
    """
    return await booking_service.create_booking(
        db,
        user_id=user_id,
        venue_id=booking_in.venue_id,
        start=booking_in.start_date,
        end=booking_in.end_date,
    )


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    booking_in: BookingUpdate,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Move a booking to new dates at its original nightly rate
    """
    return await booking_service.update_booking_dates(
        db,
        user_id=user_id,
        booking_id=booking_id,
        start=booking_in.start_date,
        end=booking_in.end_date,
    )


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Cancel a booking
    """
    return await booking_service.cancel_booking(db, user_id=user_id, booking_id=booking_id)
