"""
User profile and account endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.core.database import get_session
from staybook.core.security import get_current_user_id
from staybook.schemas.user import UserResponse, PhoneUpdate, AccountDeletedResponse
from staybook.services.account_service import account_service

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Get current user profile
    """
    return await account_service.get_profile(db, user_id)


@router.patch("/me/phone", response_model=UserResponse)
async def update_phone(
    phone_in: PhoneUpdate,
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Change the caller's phone number
    """
    return await account_service.update_phone(db, user_id, phone_in.phone_number)


@router.delete("/me", response_model=AccountDeletedResponse)
async def delete_account(
    db: AsyncSession = Depends(get_session),
    user_id: int = Depends(get_current_user_id)
) -> Any:
    """
    Delete the caller's account with their venues, favourites and address.
    Their bookings at other venues are kept, cancelled and detached.
    """
    await account_service.delete_account(db, user_id)
    return AccountDeletedResponse()
