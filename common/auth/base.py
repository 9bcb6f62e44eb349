"""
Abstract identity provider interface.

Defines the contract every third-party sign-in provider must implement.
This allows adding providers (Google, Apple, ...) without changing the code
that maps verified claims to local accounts.

Example:
    from common.auth import IdentityProvider, google_identity_provider

    providers: dict[str, IdentityProvider] = {
        "google": google_identity_provider(),
    }
    claims = await providers["google"].verify_identity(id_token, audience=client_id)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class IdentityProvider(ABC):
    """
    Abstract identity provider.

    Implementations verify a provider-issued identity token and return its
    claims. They never create or look up local users.
    """

    name: str = "provider"

    @abstractmethod
    async def verify_identity(
        self,
        token: str,
        audience: str,
    ) -> Dict[str, Any]:
        """
        Verify an identity token issued by the provider.

        Args:
            token: The identity (ID) token presented by the client
            audience: Client ID the token must have been issued for

        Returns:
            Dictionary of verified claims (at minimum: sub)

        Raises:
            ValueError: If the token is malformed, expired, mis-signed or
                issued for another audience
            ConnectionError: If the provider's signing keys cannot be fetched
        """
        pass
