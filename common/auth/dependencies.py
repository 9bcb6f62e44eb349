"""
FastAPI authentication dependencies.

Provides a factory that turns a bearer-token verifier into a dependency
injected into route handlers.

Example:
    from common.auth import create_auth_dependency

    async def verify(token: str) -> dict:
        return jwt_auth.verify_token(token, settings.JWT_SECRET)

    get_current_claims = create_auth_dependency(verify)

    @app.get("/profile")
    async def get_profile(claims: dict = Depends(get_current_claims)):
        return {"user_id": claims["sub"]}
"""

from typing import Any, Awaitable, Callable, Dict, Optional
from fastapi import Header

from common.utils.exceptions import UnauthorizedException

TokenVerifier = Callable[[str], Awaitable[Dict[str, Any]]]


def extract_bearer_token(
    authorization: Optional[str],
    scheme: str = "Bearer",
) -> str:
    """
    Pull the token out of an ``Authorization`` header value.

    Raises:
        UnauthorizedException: Header missing, wrong scheme, or empty token
    """
    if not authorization:
        raise UnauthorizedException(
            message="Missing authorization header",
            code="AUTH_REQUIRED",
        )

    prefix = f"{scheme} "
    if not authorization.startswith(prefix):
        raise UnauthorizedException(
            message=f"Invalid authorization scheme. Expected: {scheme}",
            code="INVALID_AUTH_SCHEME",
        )

    token = authorization[len(prefix):].strip()
    if not token:
        raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

    return token


def create_auth_dependency(
    verify_token: TokenVerifier,
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        verify_token: Coroutine returning the token's claims; raises
            ValueError (or an UnauthorizedException) when the token is bad
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function returning the verified claims
    """

    async def get_current_claims(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> Dict[str, Any]:
        """
        Extract and verify the bearer token from the authorization header.

        Raises:
            UnauthorizedException: If token is missing, invalid, or expired
        """
        token = extract_bearer_token(authorization, scheme)

        try:
            claims = await verify_token(token)
        except ValueError:
            raise UnauthorizedException(
                message="Invalid or expired token",
                code="INVALID_TOKEN",
            )

        if not claims.get("sub"):
            raise UnauthorizedException(
                message="Token missing user ID",
                code="INVALID_TOKEN",
            )

        return claims

    return get_current_claims
