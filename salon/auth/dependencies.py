"""
FastAPI dependencies for Auth system.

Provides dependency injection for auth services and the bearer-token guard.
"""

from typing import Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import (
    IdentityProvider,
    JWTAuth,
    apple_identity_provider,
    create_auth_dependency,
    google_identity_provider,
)
from common.sms import SMSProvider, TwilioSMSProvider
from salon.auth.models import OAuthProvider
from salon.auth.policy import RegistrationPolicy
from salon.auth.services import (
    OAuthService,
    OTPService,
    TenantService,
    TokenService,
    UserService,
)
from salon.config import Settings

_settings: Optional[Settings] = None
_user_service: Optional[UserService] = None
_token_service: Optional[TokenService] = None
_otp_service: Optional[OTPService] = None
_oauth_service: Optional[OAuthService] = None


def build_sms_provider(settings: Settings) -> Optional[SMSProvider]:
    """Twilio provider when credentials are configured, else None."""
    if not settings.sms_configured:
        return None
    return TwilioSMSProvider(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_PHONE_NUMBER,
        timeout_seconds=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def build_identity_providers(settings: Settings) -> Dict[str, IdentityProvider]:
    timeout = settings.EXTERNAL_CALL_TIMEOUT_SECONDS
    return {
        OAuthProvider.GOOGLE.value: google_identity_provider(timeout_seconds=timeout),
        OAuthProvider.APPLE.value: apple_identity_provider(timeout_seconds=timeout),
    }


def init_auth_services(
    db: AsyncIOMotorDatabase,
    settings: Settings,
    sms_provider: Optional[SMSProvider] = None,
    identity_providers: Optional[Mapping[str, IdentityProvider]] = None,
) -> None:
    """
    Initialize auth services with database and settings.

    Called once at application startup.

    Args:
        db: MongoDB database connection
        settings: Loaded application settings
        sms_provider: Override for the SMS gateway (defaults to Twilio if configured)
        identity_providers: Override for OAuth providers (defaults to Google/Apple JWKS)
    """
    global _settings, _user_service, _token_service, _otp_service, _oauth_service

    jwt_auth = JWTAuth(algorithm=settings.JWT_ALGORITHM, bcrypt_rounds=settings.BCRYPT_ROUNDS)

    _settings = settings
    _user_service = UserService(
        db=db,
        jwt_auth=jwt_auth,
        tenant_service=TenantService(db),
        policy=RegistrationPolicy(),
    )
    _token_service = TokenService(
        db=db,
        jwt_auth=jwt_auth,
        access_secret=settings.JWT_SECRET,
        refresh_secret=settings.JWT_REFRESH_SECRET,
        access_ttl_seconds=settings.access_token_ttl_seconds,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
    )
    _otp_service = OTPService(
        db=db,
        user_service=_user_service,
        sms_provider=sms_provider if sms_provider is not None else build_sms_provider(settings),
        expire_minutes=settings.OTP_EXPIRE_MINUTES,
        resend_cooldown_seconds=settings.OTP_RESEND_COOLDOWN_SECONDS,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        timeout_seconds=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )
    _oauth_service = OAuthService(
        user_service=_user_service,
        providers=identity_providers if identity_providers is not None else build_identity_providers(settings),
        client_ids={
            OAuthProvider.GOOGLE.value: settings.GOOGLE_CLIENT_ID,
            OAuthProvider.APPLE.value: settings.APPLE_CLIENT_ID,
        },
        timeout_seconds=settings.EXTERNAL_CALL_TIMEOUT_SECONDS,
    )


def _not_initialized() -> RuntimeError:
    return RuntimeError("Auth services not initialized. Call init_auth_services first.")


def get_settings() -> Settings:
    if _settings is None:
        raise _not_initialized()
    return _settings


def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise _not_initialized()
    return _user_service


def get_token_service() -> TokenService:
    """Get token service instance."""
    if _token_service is None:
        raise _not_initialized()
    return _token_service


def get_otp_service() -> OTPService:
    """Get OTP service instance."""
    if _otp_service is None:
        raise _not_initialized()
    return _otp_service


def get_oauth_service() -> OAuthService:
    """Get OAuth service instance."""
    if _oauth_service is None:
        raise _not_initialized()
    return _oauth_service


async def _verify_access_token(token: str) -> dict:
    claims = await get_token_service().verify_access_token(token)
    # Tokens outlive deactivation; the account is rechecked on every request
    await get_user_service().get_active_user(claims.get("sub"))
    return claims


require_auth = create_auth_dependency(_verify_access_token)
"""
Dependency that requires a valid access token of an existing, active account
and returns its claims.

Usage:
    @router.get("/protected")
    async def protected_route(claims: Annotated[dict, Depends(require_auth)]):
        return {"user_id": claims["sub"]}
"""

