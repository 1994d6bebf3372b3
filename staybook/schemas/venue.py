"""
Venue schemas for request/response models
"""

from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from staybook.services.availability import AvailabilityStatus

HOUR_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class VenueDetailsCreate(BaseModel):
    number_of_reviews: int = Field(0, ge=0)
    sleeping_max_capacity: Optional[int] = Field(None, ge=1)
    sleeping_beds: Optional[int] = Field(None, ge=0)
    check_in_hour: Optional[str] = Field(None, pattern=HOUR_PATTERN)
    check_out_hour: Optional[str] = Field(None, pattern=HOUR_PATTERN)
    distance_from_city_center_km: Optional[float] = Field(None, ge=0)
    contact_phone: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[str] = Field(None, max_length=255)


class VenueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(..., ge=1)
    album_id: Optional[int] = None
    rating: Optional[float] = Field(None, ge=0, le=5)

    # address
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)

    features: List[str] = []
    details: Optional[VenueDetailsCreate] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Old Town Loft",
                "description": "Bright loft next to the market square",
                "price_per_night": "100.00",
                "capacity": 3,
                "street": "Florianska 1",
                "city": "Krakow",
                "country": "PL",
                "postal_code": "31-019",
                "features": ["wifi", "kitchen"],
                "details": {
                    "number_of_reviews": 0,
                    "check_in_hour": "15:00",
                    "check_out_hour": "11:00"
                }
            }
        }


class AddressResponse(BaseModel):
    street: str
    city: str
    country: str
    postal_code: Optional[str] = None


class SleepingDetails(BaseModel):
    max_capacity: Optional[int] = None
    amount_of_beds: Optional[int] = None


class ContactDetails(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class VenueCard(BaseModel):
    id: int
    title: str
    city: Optional[str] = None
    postal_code: Optional[str] = None
    price_per_night: Decimal
    rating: Optional[float] = None
    capacity: int
    album_id: Optional[int] = None
    features: List[str] = []
    is_favourite: bool = False
    availability_status: AvailabilityStatus = AvailabilityStatus.UNKNOWN


class VenueDetail(VenueCard):
    slug: str
    description: str
    host_id: int
    address: Optional[AddressResponse] = None
    number_of_reviews: int = 0
    sleeping_details: SleepingDetails = SleepingDetails()
    check_in_hour: Optional[str] = None
    check_out_hour: Optional[str] = None
    distance_from_city_center_km: Optional[float] = None
    contact_details: ContactDetails = ContactDetails()
    created_at: datetime
    updated_at: Optional[datetime] = None
