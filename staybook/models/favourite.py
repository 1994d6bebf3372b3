"""
Favourite model
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from staybook.models.base import BaseModel


class Favourite(BaseModel):
    """
    Membership of a venue in a user's favourites
    """
    __tablename__ = "favourites"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="favourites")
    venue = relationship("Venue", back_populates="favourites")

    __table_args__ = (
        UniqueConstraint("user_id", "venue_id", name="uq_favourites_user_venue"),
    )

    def __repr__(self):
        return f"<Favourite(user_id={self.user_id}, venue_id={self.venue_id})>"
