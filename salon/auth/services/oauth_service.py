"""
Google and Apple sign-in.

Identity tokens are verified by the registered ``IdentityProvider`` for the
provider tag, then mapped onto a local account by email. An existing account
with the same email is linked to the provider (account merge by email); new
accounts are always customers.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Union

from common.auth.base import IdentityProvider
from common.utils.exceptions import (
    ConflictException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from salon.auth.models import OAuthProvider, UserRole
from salon.auth.policy import RegistrationPlan
from salon.auth.services.user_service import UserService

logger = logging.getLogger(__name__)

_DISPLAY_NAMES = {OAuthProvider.GOOGLE: "Google", OAuthProvider.APPLE: "Apple"}


def names_from_email(email: Optional[str]) -> tuple:
    """
    Best-effort first/last name from an email local part.

    ``john.doe@x.com`` -> ("John", "Doe"); ``jd@x.com`` -> ("Jd", "").
    Falls back to ("User", "").
    """
    local = (email or "").split("@")[0]
    parts = [p for p in local.split(".") if p]
    if not parts:
        return "User", ""
    first = parts[0].capitalize()
    last = " ".join(p.capitalize() for p in parts[1:])
    return first, last


class OAuthService:
    """
    Verifies provider identity tokens and finds or creates the local user.
    """

    def __init__(
        self,
        user_service: UserService,
        providers: Mapping[str, IdentityProvider],
        client_ids: Mapping[str, Optional[str]],
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize OAuthService.

        Args:
            user_service: Account lookups and creation
            providers: Identity providers keyed by tag ("google", "apple")
            client_ids: Expected token audience per tag; None disables the provider
            timeout_seconds: Deadline for each provider call
        """
        self._user_service = user_service
        self._providers = dict(providers)
        self._client_ids = dict(client_ids)
        self._timeout = timeout_seconds

    def is_configured(self, provider: Union[str, OAuthProvider]) -> bool:
        tag = OAuthProvider(provider).value
        return bool(self._client_ids.get(tag)) and tag in self._providers

    async def _verify(self, provider: OAuthProvider, token: str) -> Dict[str, Any]:
        name = _DISPLAY_NAMES[provider]

        if not self.is_configured(provider):
            raise ServiceUnavailableException(
                message=f"{name} OAuth not configured",
                code="OAUTH_NOT_CONFIGURED",
            )

        identity_provider = self._providers[provider.value]
        audience = self._client_ids[provider.value]

        try:
            return await asyncio.wait_for(
                identity_provider.verify_identity(token, audience),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"{name} token verification timed out after {self._timeout}s")
            raise ServiceUnavailableException(
                message=f"{name} sign-in is temporarily unavailable",
                code="OAUTH_PROVIDER_TIMEOUT",
            )
        except ConnectionError as e:
            logger.error(f"{name} token verification unavailable: {e}")
            raise ServiceUnavailableException(
                message=f"{name} sign-in is temporarily unavailable",
                code="OAUTH_PROVIDER_UNAVAILABLE",
            )
        except ValueError as e:
            logger.warning(f"{name} token rejected: {e}")
            raise UnauthorizedException(
                message=f"Invalid {name} token",
                code="INVALID_OAUTH_TOKEN",
            )

    async def verify_google(
        self,
        access_token: Optional[str],
        id_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Verify a Google sign-in.

        The ID token is preferred; the access token is tried only when no
        ID token was sent.

        Returns:
            dict with email, firstName, lastName, avatar, provider, providerId

        Raises:
            UnauthorizedException: Invalid Google token
            ServiceUnavailableException: Not configured, or Google unreachable
        """
        token = id_token or access_token
        if not token:
            raise UnauthorizedException(message="Invalid Google token", code="INVALID_OAUTH_TOKEN")

        claims = await self._verify(OAuthProvider.GOOGLE, token)

        if not claims.get("email") or not claims.get("sub"):
            raise UnauthorizedException(message="Invalid Google token", code="INVALID_OAUTH_TOKEN")

        return {
            "email": claims["email"].lower(),
            "firstName": claims.get("given_name") or "",
            "lastName": claims.get("family_name") or "",
            "avatar": claims.get("picture"),
            "provider": OAuthProvider.GOOGLE.value,
            "providerId": claims["sub"],
        }

    async def verify_apple(
        self,
        identity_token: str,
        authorization_code: Optional[str] = None,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Verify a Sign in with Apple identity token.

        Apple sends the user's name only on the first sign-in, through the
        client. When absent it is derived from the email local part, which
        is a guess.

        Raises:
            UnauthorizedException: Invalid Apple token
            ServiceUnavailableException: Not configured, or Apple unreachable
        """
        claims = await self._verify(OAuthProvider.APPLE, identity_token)

        resolved_email = claims.get("email") or email
        if not resolved_email or not claims.get("sub"):
            raise UnauthorizedException(message="Invalid Apple token", code="INVALID_OAUTH_TOKEN")

        if not first_name:
            first_name, derived_last = names_from_email(resolved_email)
            last_name = last_name or derived_last

        return {
            "email": resolved_email.lower(),
            "firstName": first_name,
            "lastName": last_name or "",
            "avatar": None,
            "provider": OAuthProvider.APPLE.value,
            "providerId": claims["sub"],
        }

    async def find_or_create(self, oauth_user: Dict[str, Any]) -> dict:
        """
        Map verified provider claims onto a local account.

        Existing account (by email): backfill the provider id if unlinked,
        the avatar if missing, and mark the email verified. Calling this
        twice with the same claims changes nothing the second time.

        New account: CUSTOMER with verified email, no password, the provider
        id, and a customer profile, created in one transaction.

        Raises:
            ConflictException: Provider id already linked to a different account
        """
        provider = OAuthProvider(oauth_user["provider"])
        email = oauth_user["email"]

        user = await self._user_service.get_user_by_email(email)
        if user:
            return await self._backfill(user, provider, oauth_user)

        new_user = self._user_service.build_user(
            email=email,
            first_name=oauth_user.get("firstName") or "",
            last_name=oauth_user.get("lastName") or "",
            role=UserRole.CUSTOMER,
            avatar=oauth_user.get("avatar"),
            is_email_verified=True,
        )
        new_user[provider.id_field] = oauth_user["providerId"]

        try:
            await self._user_service.create_account(
                new_user,
                RegistrationPlan(role=UserRole.CUSTOMER, create_customer_profile=True),
            )
        except ConflictException:
            # Concurrent first sign-in with the same email
            user = await self._user_service.get_user_by_email(email)
            if not user:
                raise
            return await self._backfill(user, provider, oauth_user)

        logger.info(f"New user created via {provider.value}: {email}")
        return new_user

    async def _backfill(
        self,
        user: dict,
        provider: OAuthProvider,
        oauth_user: Dict[str, Any],
    ) -> dict:
        updates: Dict[str, Any] = {}

        if not user.get(provider.id_field):
            updates[provider.id_field] = oauth_user["providerId"]

        if oauth_user.get("avatar") and not user.get("avatar"):
            updates["avatar"] = oauth_user["avatar"]

        if not user.get("isEmailVerified"):
            updates["isEmailVerified"] = True

        if updates:
            await self._user_service.update_user(user["_id"], updates)
            user = {**user, **updates}

        logger.info(f"Existing user signed in via {provider.value}: {user.get('email')}")
        return user
