"""
Database models
"""

from staybook.models.user import User
from staybook.models.venue import Address, Venue, VenueDetails, Feature, VenueFeature
from staybook.models.booking import Booking, BookingStatus
from staybook.models.favourite import Favourite

__all__ = [
    "User",
    "Address",
    "Venue",
    "VenueDetails",
    "Feature",
    "VenueFeature",
    "Booking",
    "BookingStatus",
    "Favourite",
]
