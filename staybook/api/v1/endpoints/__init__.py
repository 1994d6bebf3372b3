"""
API endpoints module
"""

from . import bookings, favourites, health, users, venues

__all__ = [
    "bookings",
    "favourites",
    "health",
    "users",
    "venues",
]
