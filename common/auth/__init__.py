"""
Authentication module - Token signing, password hashing, identity providers.
"""

from common.auth.base import IdentityProvider
from common.auth.jwt_auth import JWTAuth
from common.auth.oidc import OIDCIdentityProvider, google_identity_provider, apple_identity_provider
from common.auth.dependencies import create_auth_dependency

__all__ = [
    "IdentityProvider",
    "JWTAuth",
    "OIDCIdentityProvider",
    "google_identity_provider",
    "apple_identity_provider",
    "create_auth_dependency",
]
