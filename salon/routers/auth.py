"""
FastAPI router for Auth system endpoints.

Provides registration, login, token refresh/logout, phone verification and
OAuth sign-in endpoints. Handlers only unpack requests and wrap pipeline
results; all rules live in the pipelines and services.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from common.utils import success_response
from salon.auth import pipelines
from salon.auth.dependencies import (
    get_oauth_service,
    get_otp_service,
    get_settings,
    get_token_service,
    get_user_service,
    require_auth,
)
from salon.auth.services import OAuthService, OTPService, TokenService, UserService
from salon.config import Settings
from salon.schemas.auth import (
    AppleOAuthRequest,
    GoogleOAuthRequest,
    LoginRequest,
    LogoutRequest,
    PhoneRegistrationRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SendOTPRequest,
    VerifyOTPRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """
    Register a new account.

    Customers can register freely, salon owners must provide salon data,
    staff and admin accounts cannot self-register.
    """
    result = await pipelines.register_pipeline(
        user_service=user_service,
        token_service=token_service,
        email=body.email,
        password=body.password,
        first_name=body.firstName,
        last_name=body.lastName,
        role=body.role,
        phone=body.phone,
        salon_data=body.salonData.model_dump() if body.salonData else None,
    )
    return success_response(result, message="Registration successful")


@router.post("/login")
async def login(
    body: LoginRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Authenticate with email and password."""
    result = await pipelines.login_pipeline(
        user_service=user_service,
        token_service=token_service,
        email=body.email,
        password=body.password,
    )
    return success_response(result, message="Login successful")


@router.post("/refresh")
async def refresh(
    body: RefreshTokenRequest,
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Exchange a refresh token for a new token pair. The old token stops working."""
    result = await pipelines.refresh_pipeline(token_service, body.refreshToken)
    return success_response(result, message="Tokens refreshed successfully")


@router.post("/logout")
async def logout(
    claims: Annotated[dict, Depends(require_auth)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    body: LogoutRequest = LogoutRequest(),
):
    """Revoke the given refresh token, or every session when none is given."""
    result = await pipelines.logout_pipeline(
        token_service=token_service,
        user_id=claims["sub"],
        refresh_token=body.refreshToken,
    )
    return success_response(result, message=result["message"])


@router.post("/otp/send")
async def send_otp(
    body: SendOTPRequest,
    otp_service: Annotated[OTPService, Depends(get_otp_service)],
):
    """Text a verification code to a phone number."""
    result = await pipelines.send_otp_pipeline(
        otp_service=otp_service,
        phone=body.phone,
        purpose=body.purpose,
        user_id=body.userId,
    )
    return success_response(result, message=result["message"])


@router.post("/otp/verify")
async def verify_otp(
    body: VerifyOTPRequest,
    otp_service: Annotated[OTPService, Depends(get_otp_service)],
):
    """Check a phone verification code."""
    result = await pipelines.verify_otp_pipeline(
        otp_service=otp_service,
        phone=body.phone,
        code=body.otp,
        user_id=body.userId,
        purpose=body.purpose,
    )
    return success_response(result, message=result["message"])


@router.post("/register/phone", status_code=status.HTTP_201_CREATED)
async def register_with_phone(
    body: PhoneRegistrationRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
    otp_service: Annotated[OTPService, Depends(get_otp_service)],
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Create a phone-only account after the number was verified."""
    result = await pipelines.register_with_phone_pipeline(
        user_service=user_service,
        token_service=token_service,
        otp_service=otp_service,
        phone=body.phone,
        first_name=body.firstName,
        last_name=body.lastName,
        role=body.role,
        require_verified_phone=settings.REQUIRE_PHONE_OTP_FOR_REGISTRATION,
    )
    return success_response(result, message="Registration successful")


@router.post("/oauth/google")
async def google_oauth(
    body: GoogleOAuthRequest,
    oauth_service: Annotated[OAuthService, Depends(get_oauth_service)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Sign in with a Google token."""
    result = await pipelines.google_oauth_pipeline(
        oauth_service=oauth_service,
        user_service=user_service,
        token_service=token_service,
        access_token=body.accessToken,
        id_token=body.idToken,
    )
    return success_response(result, message="Google authentication successful")


@router.post("/oauth/apple")
async def apple_oauth(
    body: AppleOAuthRequest,
    oauth_service: Annotated[OAuthService, Depends(get_oauth_service)],
    user_service: Annotated[UserService, Depends(get_user_service)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Sign in with an Apple identity token."""
    result = await pipelines.apple_oauth_pipeline(
        oauth_service=oauth_service,
        user_service=user_service,
        token_service=token_service,
        identity_token=body.identityToken,
        authorization_code=body.authorizationCode,
        email=body.email,
        first_name=body.firstName,
        last_name=body.lastName,
    )
    return success_response(result, message="Apple authentication successful")


@router.get("/me")
async def get_me(
    claims: Annotated[dict, Depends(require_auth)],
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get the current user's profile."""
    result = await pipelines.get_current_user_pipeline(user_service, claims["sub"])
    return success_response(result)


@router.get("/status")
async def check_status(claims: Annotated[dict, Depends(require_auth)]):
    """Verify that the presented access token is valid."""
    result = await pipelines.check_status_pipeline(claims)
    return success_response(result)
