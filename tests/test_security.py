"""
Unit tests for token handling and settings validation
"""

import pytest
from datetime import timedelta
from jose import jwt
from pydantic import ValidationError

from staybook.config import Settings, settings
from staybook.core.exceptions import AuthenticationError
from staybook.core.security import create_access_token, decode_token, user_id_from_token


@pytest.mark.unit
class TestTokens:
    """Test JWT creation and verification"""

    def test_round_trip_subject(self):
        token = create_access_token({"sub": "17"})
        payload = decode_token(token)

        assert payload["sub"] == "17"
        assert payload["type"] == "access"
        assert user_id_from_token(token) == 17

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "1", "type": "access"}, "x" * 40, algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_expired(self):
        token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError):
            decode_token(token)

    def test_non_numeric_subject(self):
        token = create_access_token({"sub": "alice"})
        with pytest.raises(AuthenticationError):
            user_id_from_token(token)

    def test_refresh_style_token_is_rejected(self):
        token = jwt.encode({"sub": "1", "type": "refresh"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(AuthenticationError):
            user_id_from_token(token)


@pytest.mark.unit
class TestSettings:

    def test_postgres_url_uses_asyncpg(self):
        configured = Settings(DATABASE_URL="postgresql://u:p@db/staybook")
        assert configured.DATABASE_URL == "postgresql+asyncpg://u:p@db/staybook"

    def test_short_secret_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_SECRET_KEY="short")

    def test_isolation_level_is_normalised(self):
        assert Settings(BOOKING_ISOLATION_LEVEL="repeatable_read").BOOKING_ISOLATION_LEVEL == "REPEATABLE READ"
        with pytest.raises(ValidationError):
            Settings(BOOKING_ISOLATION_LEVEL="chaos")

    def test_testing_environment(self):
        assert settings.is_testing


@pytest.mark.unit
class TestTokenIssuer:
    """Tokens come from the identity service, not from this API"""

    def test_openapi_points_at_identity_service(self):
        from staybook.main import app

        schema = app.openapi()
        scheme = schema["components"]["securitySchemes"]["OAuth2PasswordBearer"]
        assert scheme["flows"]["password"]["tokenUrl"] == settings.AUTH_TOKEN_URL
        assert not any(path.endswith("/auth/token") for path in schema["paths"])

    def test_token_url_is_configurable(self, monkeypatch):
        monkeypatch.setenv("AUTH_TOKEN_URL", "https://id.example.org/token")
        assert Settings().AUTH_TOKEN_URL == "https://id.example.org/token"
