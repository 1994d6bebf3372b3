"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter

from staybook.schemas.response import ErrorResponse
from staybook.api.v1.endpoints import (
    users,
    venues,
    bookings,
    favourites,
    health
)

api_router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }
)

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(venues.router, prefix="/venues", tags=["venues"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(favourites.router, prefix="/favourites", tags=["favourites"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
