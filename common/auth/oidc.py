"""
OpenID Connect identity token verification.

Verifies RS256 ID tokens against the issuer's published JSON Web Key Set.
Keys are cached per provider instance and refetched once when a token
references an unknown key ID (the issuer rotated its keys).

Example:
    google = google_identity_provider()
    claims = await google.verify_identity(id_token, audience=GOOGLE_CLIENT_ID)
    print(claims["sub"], claims.get("email"))
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from jose import jwt, JWTError
from jose.exceptions import JWKError

from common.auth.base import IdentityProvider

logger = logging.getLogger(__name__)

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

APPLE_JWKS_URL = "https://appleid.apple.com/auth/keys"
APPLE_ISSUERS = ("https://appleid.apple.com",)


class OIDCIdentityProvider(IdentityProvider):
    """
    Identity provider backed by an issuer's JWKS endpoint.
    """

    def __init__(
        self,
        name: str,
        jwks_url: str,
        issuers: Sequence[str],
        algorithms: Sequence[str] = ("RS256",),
        timeout_seconds: float = 10.0,
    ):
        """
        Args:
            name: Provider tag ("google", "apple")
            jwks_url: URL of the issuer's JSON Web Key Set
            issuers: Accepted values of the ``iss`` claim
            algorithms: Accepted signing algorithms
            timeout_seconds: HTTP timeout for fetching keys
        """
        self.name = name
        self._jwks_url = jwks_url
        self._issuers = tuple(issuers)
        self._algorithms = list(algorithms)
        self._timeout = timeout_seconds
        self._keys: Optional[List[Dict[str, Any]]] = None

    async def _fetch_keys(self) -> List[Dict[str, Any]]:
        """Download the issuer's signing keys."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._jwks_url)
                response.raise_for_status()
                keys = response.json().get("keys", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch {self.name} signing keys: {e}")
            raise ConnectionError(f"Unable to fetch {self.name} signing keys") from e

        logger.info(f"Fetched {len(keys)} {self.name} signing keys")
        return keys

    async def _get_key(self, kid: Optional[str]) -> Dict[str, Any]:
        """Return the JWK for ``kid``, refreshing the cache once on a miss."""
        if self._keys is None:
            self._keys = await self._fetch_keys()

        key = self._find_key(kid)
        if key is None:
            logger.warning(f"Key ID {kid} not found in {self.name} keys, refreshing")
            self._keys = await self._fetch_keys()
            key = self._find_key(kid)

        if key is None:
            raise ValueError(f"Unknown signing key: {kid}")
        return key

    def _find_key(self, kid: Optional[str]) -> Optional[Dict[str, Any]]:
        for key in self._keys or []:
            if kid is None or key.get("kid") == kid:
                return key
        return None

    async def verify_identity(self, token: str, audience: str) -> Dict[str, Any]:
        """Verify signature, audience, issuer and expiry of an ID token."""
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise ValueError(f"Malformed {self.name} token: {e}")

        if header.get("alg") not in self._algorithms:
            raise ValueError(f"Unexpected signing algorithm: {header.get('alg')}")

        key = await self._get_key(header.get("kid"))

        try:
            return jwt.decode(
                token,
                key,
                algorithms=self._algorithms,
                audience=audience,
                issuer=self._issuers,
                options={"verify_at_hash": False},
            )
        except (JWTError, JWKError) as e:
            raise ValueError(f"Invalid {self.name} token: {e}")


def google_identity_provider(timeout_seconds: float = 10.0) -> OIDCIdentityProvider:
    """Provider for Google Sign-In ID tokens."""
    return OIDCIdentityProvider(
        name="google",
        jwks_url=GOOGLE_JWKS_URL,
        issuers=GOOGLE_ISSUERS,
        timeout_seconds=timeout_seconds,
    )


def apple_identity_provider(timeout_seconds: float = 10.0) -> OIDCIdentityProvider:
    """Provider for Sign in with Apple identity tokens."""
    return OIDCIdentityProvider(
        name="apple",
        jwks_url=APPLE_JWKS_URL,
        issuers=APPLE_ISSUERS,
        timeout_seconds=timeout_seconds,
    )
