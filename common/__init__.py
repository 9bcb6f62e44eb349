"""
Common library for reusable infrastructure components.

This package provides generic modules that can be used across projects:

- database: Async MongoDB connection and transactions (Motor)
- auth: JWT signing, password hashing and OIDC identity verification
- sms: Pluggable SMS providers (Twilio)
- utils: Standard responses, exceptions, password validation
- config: Base settings class
"""

from common.database import MongoDB, start_transaction
from common.auth import (
    IdentityProvider,
    JWTAuth,
    OIDCIdentityProvider,
    create_auth_dependency,
)
from common.sms import SMSProvider, TwilioSMSProvider
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    ValidationException,
    validate_password,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "start_transaction",
    # Auth
    "IdentityProvider",
    "JWTAuth",
    "OIDCIdentityProvider",
    "create_auth_dependency",
    # SMS
    "SMSProvider",
    "TwilioSMSProvider",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "ValidationException",
    "validate_password",
    # Config
    "BaseAppSettings",
]
