"""
Bearer token handling for authenticated callers.

Access tokens are issued by an external identity service at
``settings.AUTH_TOKEN_URL``; this API only verifies them. The issuer
shares the HS256 secret and puts the numeric user id in ``sub``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import logging
import time

from staybook.config import settings
from staybook.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL)
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=settings.AUTH_TOKEN_URL,
    auto_error=False,
)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": "access",
        "iat": int(time.time()),
    })
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise AuthenticationError() from e


def user_id_from_token(token: str) -> int:
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type. Expected access")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError()


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """
    Numeric id of the authenticated caller
    """
    return user_id_from_token(token)


async def get_optional_user_id(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[int]:
    """
    Caller id when a valid token is sent, None for anonymous requests
    """
    if not token:
        return None
    return user_id_from_token(token)
