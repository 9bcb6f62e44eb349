"""
Auth system pipeline functions.

Stateless orchestration logic for authentication flows. Each pipeline
composes the services it is handed, returns a plain dict, and logs the
outcome with identifying context (email, phone, user id). Passwords, codes
and tokens are never logged. Typed errors are logged and re-raised as is.
"""

import logging
import uuid
from typing import Optional

from common.utils.exceptions import APIException, UnauthorizedException, ValidationException
from salon.auth.models import OTPPurpose, format_user
from salon.auth.services.oauth_service import OAuthService
from salon.auth.services.otp_service import OTPService
from salon.auth.services.token_service import TokenService
from salon.auth.services.user_service import UserService

logger = logging.getLogger(__name__)


async def register_pipeline(
    user_service: UserService,
    token_service: TokenService,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: Optional[str] = None,
    phone: Optional[str] = None,
    salon_data: Optional[dict] = None,
) -> dict:
    """
    Orchestrates password registration.

    Args:
        user_service: Creates the user and its companion rows
        token_service: Issues the first token pair
        email: Login email
        password: Plaintext password
        first_name: Given name
        last_name: Family name
        role: Requested role (default CUSTOMER)
        phone: Optional phone number
        salon_data: Salon payload for SALON_OWNER

    Returns:
        dict with user and tokens

    Raises:
        ForbiddenException: STAFF or ADMIN self-registration
        ValidationException: Invalid role, missing salon data, weak password
        ConflictException: Email or phone already registered
    """
    try:
        user = await user_service.register(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            salon_data=salon_data,
        )
    except APIException as e:
        logger.warning(f"Registration rejected for {email} (role={role}): {e}")
        raise

    tokens = await token_service.issue(user)

    logger.info(f"Registration successful for {user['email']} ({user['_id']})")

    return {"user": format_user(user), "tokens": tokens}


async def login_pipeline(
    user_service: UserService,
    token_service: TokenService,
    email: str,
    password: str,
) -> dict:
    """
    Orchestrates password login.

    Returns:
        dict with user and tokens

    Raises:
        UnauthorizedException: Invalid credentials (same for unknown email)
        ForbiddenException: Account deactivated
    """
    try:
        user = await user_service.authenticate(email, password)
    except APIException as e:
        logger.warning(f"Login failed for {email}: {e}")
        raise

    tokens = await token_service.issue(user)

    logger.info(f"User logged in: {user['_id']}")

    return {"user": format_user(user), "tokens": tokens}


async def refresh_pipeline(token_service: TokenService, refresh_token: str) -> dict:
    """
    Orchestrates refresh-token rotation.

    Returns:
        dict with tokens

    Raises:
        UnauthorizedException: Token invalid, expired, revoked or already used
        ForbiddenException: Account deactivated
    """
    try:
        result = await token_service.refresh(refresh_token)
    except APIException as e:
        logger.warning(f"Token refresh rejected: {e}")
        raise

    return {"tokens": result["tokens"]}


async def logout_pipeline(
    token_service: TokenService,
    user_id: str,
    refresh_token: Optional[str] = None,
) -> dict:
    """
    Orchestrates logout.

    Revokes only ``refresh_token`` when given, otherwise every refresh token
    of the user (logout from all devices).
    """
    revoked_count = await token_service.logout(user_id, refresh_token)

    scope = "session" if refresh_token else "all sessions"
    logger.info(f"User {user_id} logged out ({scope}, {revoked_count} tokens revoked)")

    return {"revokedCount": revoked_count, "message": "Logged out successfully"}


async def send_otp_pipeline(
    otp_service: OTPService,
    phone: str,
    purpose: str = OTPPurpose.REGISTRATION.value,
    user_id: Optional[str] = None,
) -> dict:
    """
    Orchestrates sending a verification code.

    A caller without an account gets a fresh user id, which it must present
    again when verifying.

    Returns:
        dict with userId, expiresAt and message

    Raises:
        RateLimitException: Resend cooldown not elapsed
        ServiceUnavailableException: SMS not configured or delivery failed
    """
    target_user_id = user_id or str(uuid.uuid4())

    try:
        result = await otp_service.send(target_user_id, phone, purpose)
    except APIException as e:
        logger.warning(f"OTP send to {phone} rejected for user {target_user_id}: {e}")
        raise

    return {
        "userId": target_user_id,
        "expiresAt": result["expiresAt"],
        "message": "Verification code sent successfully",
    }


async def verify_otp_pipeline(
    otp_service: OTPService,
    phone: str,
    code: str,
    user_id: Optional[str],
    purpose: str = OTPPurpose.REGISTRATION.value,
) -> dict:
    """
    Orchestrates code verification.

    Raises:
        ValidationException: No user id supplied
        UnauthorizedException: Invalid/expired code or too many attempts
    """
    if not user_id:
        raise ValidationException(
            message="User ID is required for OTP verification",
            code="USER_ID_REQUIRED",
        )

    try:
        verified = await otp_service.verify(user_id, phone, code, purpose)
    except APIException as e:
        logger.warning(f"OTP verification failed for {phone} (user {user_id}): {e}")
        raise

    return {"verified": verified, "message": "Phone number verified successfully"}


async def register_with_phone_pipeline(
    user_service: UserService,
    token_service: TokenService,
    otp_service: OTPService,
    phone: str,
    first_name: str,
    last_name: str,
    role: Optional[str] = None,
    require_verified_phone: bool = True,
) -> dict:
    """
    Orchestrates phone-only registration.

    Args:
        require_verified_phone: Demand a verified registration code for
            ``phone`` before creating the account

    Raises:
        UnauthorizedException: Phone not verified
        ValidationException: Role needs data a phone signup cannot carry
        ForbiddenException: STAFF or ADMIN role
        ConflictException: Phone already registered
    """
    try:
        if require_verified_phone and not await otp_service.has_verified(
            phone, OTPPurpose.REGISTRATION
        ):
            raise UnauthorizedException(
                message="Phone number has not been verified",
                code="PHONE_NOT_VERIFIED",
            )

        user = await user_service.register_with_phone(
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
    except APIException as e:
        logger.warning(f"Phone registration rejected for {phone}: {e}")
        raise

    tokens = await token_service.issue(user)

    logger.info(f"Phone registration successful: {phone} ({user['_id']})")

    return {"user": format_user(user), "tokens": tokens}


async def google_oauth_pipeline(
    oauth_service: OAuthService,
    user_service: UserService,
    token_service: TokenService,
    access_token: Optional[str],
    id_token: Optional[str] = None,
) -> dict:
    """
    Orchestrates Google sign-in.

    Raises:
        UnauthorizedException: Invalid Google token
        ForbiddenException: Linked account deactivated
        ServiceUnavailableException: Google not configured or unreachable
    """
    try:
        oauth_user = await oauth_service.verify_google(access_token, id_token)
        user = await oauth_service.find_or_create(oauth_user)
        await user_service.get_active_user(user["_id"])
    except APIException as e:
        logger.warning(f"Google sign-in rejected: {e}")
        raise

    tokens = await token_service.issue(user)

    logger.info(f"Google sign-in successful for {user['email']} ({user['_id']})")

    return {"user": format_user(user), "tokens": tokens}


async def apple_oauth_pipeline(
    oauth_service: OAuthService,
    user_service: UserService,
    token_service: TokenService,
    identity_token: str,
    authorization_code: Optional[str] = None,
    email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> dict:
    """
    Orchestrates Sign in with Apple.

    Raises:
        UnauthorizedException: Invalid Apple token
        ForbiddenException: Linked account deactivated
        ServiceUnavailableException: Apple not configured or unreachable
    """
    try:
        oauth_user = await oauth_service.verify_apple(
            identity_token,
            authorization_code=authorization_code,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        user = await oauth_service.find_or_create(oauth_user)
        await user_service.get_active_user(user["_id"])
    except APIException as e:
        logger.warning(f"Apple sign-in rejected: {e}")
        raise

    tokens = await token_service.issue(user)

    logger.info(f"Apple sign-in successful for {user['email']} ({user['_id']})")

    return {"user": format_user(user), "tokens": tokens}


async def get_current_user_pipeline(user_service: UserService, user_id: str) -> dict:
    """
    Load the caller's profile.

    Raises:
        UnauthorizedException: User no longer exists
        ForbiddenException: Account deactivated
    """
    user = await user_service.get_active_user(user_id)
    return {"user": format_user(user)}


async def check_status_pipeline(claims: dict) -> dict:
    """Report the identity carried by a valid access token."""
    return {
        "authenticated": True,
        "user": {
            "id": claims["sub"],
            "email": claims.get("email"),
            "role": claims.get("role"),
        },
    }
