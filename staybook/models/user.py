"""
User model
"""

from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship

from staybook.models.base import BaseModel


class User(BaseModel):
    """
    User model; acts as host for venues and guest for bookings
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(20))
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), unique=True)

    # Relationships
    address = relationship("Address", foreign_keys=[address_id])
    venues = relationship("Venue", back_populates="host", passive_deletes=True)
    bookings = relationship("Booking", back_populates="user", passive_deletes=True)
    favourites = relationship("Favourite", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
