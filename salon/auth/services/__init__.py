"""
Auth services - accounts, companion rows, OTP, tokens and OAuth.
"""

from salon.auth.services.token_hasher import TokenHasher
from salon.auth.services.tenant_service import TenantService
from salon.auth.services.user_service import UserService
from salon.auth.services.otp_service import OTPService
from salon.auth.services.token_service import TokenService
from salon.auth.services.oauth_service import OAuthService

__all__ = [
    "TokenHasher",
    "TenantService",
    "UserService",
    "OTPService",
    "TokenService",
    "OAuthService",
]
