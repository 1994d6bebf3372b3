"""
User schemas
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
import re

from staybook.schemas.base import BaseSchema, IDSchema, TimestampSchema


class AddressSchema(BaseSchema):
    street: str
    city: str
    country: str
    postal_code: Optional[str] = None


class UserResponse(IDSchema, TimestampSchema):
    """Public user profile"""
    email: EmailStr
    name: str
    phone_number: Optional[str] = None
    address: Optional[AddressSchema] = None


class PhoneUpdate(BaseSchema):
    """Phone number change schema"""
    phone_number: str = Field(..., min_length=1, max_length=20)

    @field_validator('phone_number')
    def validate_phone(cls, v):
        if not re.match(r'^\+?[1-9]\d{1,14}$', v):
            raise ValueError('Invalid phone number format')
        return v


class AccountDeletedResponse(BaseSchema):
    deleted: bool = True
