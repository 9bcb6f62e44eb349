"""Shared test fixtures for the salon auth tests."""

import re

import pytest
from unittest.mock import AsyncMock

from common.auth import IdentityProvider, JWTAuth
from common.sms import SMSProvider
from salon.auth.policy import RegistrationPolicy
from salon.auth.services import (
    OAuthService,
    OTPService,
    TenantService,
    TokenService,
    UserService,
)
from salon.config import Settings

from fakes import FakeDatabase

STRONG_PASSWORD = "Abc123!@"


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        JWT_SECRET="test-access-secret",
        JWT_REFRESH_SECRET="test-refresh-secret",
        BCRYPT_ROUNDS=4,
        TWILIO_ACCOUNT_SID="AC00000000000000000000000000000000",
        TWILIO_AUTH_TOKEN="twilio-token",
        TWILIO_PHONE_NUMBER="+15550001111",
        GOOGLE_CLIENT_ID="google-client-id.apps.googleusercontent.com",
        APPLE_CLIENT_ID="com.example.salon",
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def jwt_auth():
    return JWTAuth(bcrypt_rounds=4)


@pytest.fixture
def tenant_service(fake_db):
    return TenantService(fake_db)


@pytest.fixture
def user_service(fake_db, jwt_auth, tenant_service):
    return UserService(fake_db, jwt_auth, tenant_service, RegistrationPolicy())


@pytest.fixture
def token_service(fake_db, jwt_auth, test_settings):
    return TokenService(
        fake_db,
        jwt_auth,
        access_secret=test_settings.JWT_SECRET,
        refresh_secret=test_settings.JWT_REFRESH_SECRET,
        access_ttl_seconds=test_settings.access_token_ttl_seconds,
        refresh_ttl_seconds=test_settings.refresh_token_ttl_seconds,
    )


@pytest.fixture
def mock_sms():
    sms = AsyncMock(spec=SMSProvider)
    sms.send.return_value = "SM00000000000000000000000000000000"
    return sms


@pytest.fixture
def otp_service(fake_db, user_service, mock_sms):
    return OTPService(fake_db, user_service, mock_sms)


@pytest.fixture
def last_sms_code(mock_sms):
    """Return the code in the most recent text message."""
    def _code():
        body = mock_sms.send.call_args[0][1]
        return re.search(r"\b(\d{6})\b", body).group(1)
    return _code


@pytest.fixture
def mock_google():
    provider = AsyncMock(spec=IdentityProvider)
    provider.name = "google"
    return provider


@pytest.fixture
def mock_apple():
    provider = AsyncMock(spec=IdentityProvider)
    provider.name = "apple"
    return provider


@pytest.fixture
def oauth_service(user_service, mock_google, mock_apple, test_settings):
    return OAuthService(
        user_service,
        providers={"google": mock_google, "apple": mock_apple},
        client_ids={
            "google": test_settings.GOOGLE_CLIENT_ID,
            "apple": test_settings.APPLE_CLIENT_ID,
        },
        timeout_seconds=1.0,
    )


@pytest.fixture
def sample_salon_data():
    return {
        "salonName": "Studio Nord",
        "salonAddress": "Drottninggatan 12",
        "salonCity": "Stockholm",
        "salonCountry": "Sweden",
        "salonPhone": "+46812345678",
        "salonEmail": "Hello@StudioNord.se",
        "salonWebsite": "https://studionord.se",
    }


@pytest.fixture
def strong_password():
    return STRONG_PASSWORD
