"""
Pydantic schemas for request and response validation
"""

from staybook.schemas.booking import (
    BookingCreate,
    BookingUpdate,
    BookingResponse,
    BookingWithVenueResponse,
)
from staybook.schemas.venue import (
    VenueCreate,
    VenueCard,
    VenueDetail,
)
from staybook.schemas.user import (
    UserResponse,
    PhoneUpdate,
)
from staybook.schemas.response import (
    ErrorResponse,
    PaginatedResponse,
    PaginationMeta,
)

__all__ = [
    "BookingCreate",
    "BookingUpdate",
    "BookingResponse",
    "BookingWithVenueResponse",
    "VenueCreate",
    "VenueCard",
    "VenueDetail",
    "UserResponse",
    "PhoneUpdate",
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationMeta",
]
