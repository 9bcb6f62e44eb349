"""
Utilities module - API response envelopes, typed exceptions, password rules.
"""

from common.utils.responses import success_response, error_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    ForbiddenException,
    ConflictException,
    ValidationException,
    RateLimitException,
    ServiceUnavailableException,
)
from common.utils.password import validate_password, ensure_strong_password

__all__ = [
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "ConflictException",
    "ValidationException",
    "RateLimitException",
    "ServiceUnavailableException",
    "validate_password",
    "ensure_strong_password",
]
