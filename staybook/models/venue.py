"""
Venue, VenueDetails, Address, Feature and VenueFeature models
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Numeric,
    Float,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from staybook.models.base import BaseModel


class Address(BaseModel):
    """
    Postal address; a venue owns its address exclusively (1:1)
    """
    __tablename__ = "addresses"

    street = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    postal_code = Column(String(20))

    venue = relationship("Venue", back_populates="address", uselist=False)

    def __repr__(self):
        return f"<Address(id={self.id}, city={self.city}, country={self.country})>"


class Venue(BaseModel):
    """
    Venue model for bookable listings
    """
    __tablename__ = "venues"

    title = Column(String(200), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    price_per_night = Column(Numeric(10, 2), nullable=False, index=True)
    capacity = Column(Integer, nullable=False, index=True)
    album_id = Column(Integer)
    rating = Column(Float)
    host_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.id", ondelete="SET NULL"), unique=True)

    # Relationships
    host = relationship("User", back_populates="venues")
    address = relationship("Address", back_populates="venue")
    details = relationship("VenueDetails", back_populates="venue", uselist=False, passive_deletes=True)
    venue_features = relationship("VenueFeature", back_populates="venue", passive_deletes=True)
    bookings = relationship("Booking", back_populates="venue", passive_deletes=True)
    favourites = relationship("Favourite", back_populates="venue", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("price_per_night >= 0", name="chk_venues_price_non_negative"),
        CheckConstraint("capacity >= 1", name="chk_venues_capacity_positive"),
    )

    @property
    def city(self):
        return self.address.city if self.address is not None else None

    @property
    def feature_names(self):
        return [vf.feature.name for vf in self.venue_features if vf.feature is not None]

    def __repr__(self):
        return f"<Venue(id={self.id}, title={self.title}, price={self.price_per_night}, capacity={self.capacity})>"


class VenueDetails(BaseModel):
    """
    Optional extra facts shown on the venue page (1:1 with the venue)
    """
    __tablename__ = "venue_details"

    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), unique=True, nullable=False)
    number_of_reviews = Column(Integer, nullable=False, default=0)
    sleeping_max_capacity = Column(Integer)
    sleeping_beds = Column(Integer)
    check_in_hour = Column(String(5))  # HH:MM
    check_out_hour = Column(String(5))
    distance_from_city_center_km = Column(Float)
    contact_phone = Column(String(20))
    contact_email = Column(String(255))

    venue = relationship("Venue", back_populates="details")

    __table_args__ = (
        CheckConstraint("number_of_reviews >= 0", name="chk_venue_details_reviews_non_negative"),
    )

    def __repr__(self):
        return f"<VenueDetails(venue_id={self.venue_id}, reviews={self.number_of_reviews})>"


class Feature(BaseModel):
    """
    Named amenity; the name is the identity key
    """
    __tablename__ = "features"

    name = Column(String(100), unique=True, nullable=False)

    venue_features = relationship("VenueFeature", back_populates="feature", passive_deletes=True)

    def __repr__(self):
        return f"<Feature(id={self.id}, name={self.name})>"


class VenueFeature(BaseModel):
    """
    Junction table for venue-feature relationship
    """
    __tablename__ = "venue_features"

    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    feature_id = Column(Integer, ForeignKey("features.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    venue = relationship("Venue", back_populates="venue_features")
    feature = relationship("Feature", back_populates="venue_features")

    __table_args__ = (
        UniqueConstraint("venue_id", "feature_id", name="uq_venue_features_venue_feature"),
    )

    def __repr__(self):
        return f"<VenueFeature(venue_id={self.venue_id}, feature_id={self.feature_id})>"
