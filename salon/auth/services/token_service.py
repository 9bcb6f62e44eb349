"""
Access/refresh token issuing with store-tracked rotation.

Access tokens are stateless JWTs. Refresh tokens are JWTs as well, but one is
only honoured while its digest is present in the refreshTokens collection:
revocation is deletion, and every refresh deletes the presented token before
issuing a new pair.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth.jwt_auth import JWTAuth
from common.utils.exceptions import ForbiddenException, UnauthorizedException
from salon.auth.services.token_hasher import TokenHasher
from salon.database.collections import REFRESH_TOKENS, USERS

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"
REFRESH_CLAIM_TYPE = "refresh"


class TokenService:
    """
    Signs token pairs and manages the refresh-token store.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        jwt_auth: JWTAuth,
        access_secret: str,
        refresh_secret: str,
        access_ttl_seconds: int = 900,
        refresh_ttl_seconds: int = 7 * 24 * 60 * 60,
    ):
        """
        Initialize TokenService.

        Args:
            db: MongoDB database connection
            jwt_auth: JWT signing primitives
            access_secret: Secret for access tokens
            refresh_secret: Secret for refresh tokens (must differ)
            access_ttl_seconds: Access token lifetime
            refresh_ttl_seconds: Refresh token lifetime
        """
        self._db = db
        self._jwt_auth = jwt_auth
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds
        self._tokens_collection = db[REFRESH_TOKENS]
        self._users_collection = db[USERS]

    async def issue(self, user: dict) -> Dict[str, Any]:
        """
        Sign a fresh token pair for ``user`` and persist the refresh token.

        Returns:
            dict with accessToken, refreshToken, expiresIn, tokenType
        """
        user_id = str(user["_id"])
        claims = {"sub": user_id, "email": user.get("email"), "role": user.get("role")}

        access_token = self._jwt_auth.create_token(claims, self._access_secret, self._access_ttl)
        refresh_token = self._jwt_auth.create_token(
            {
                **claims,
                "type": REFRESH_CLAIM_TYPE,
                "jti": TokenHasher.generate_token_id(),
            },
            self._refresh_secret,
            self._refresh_ttl,
        )

        now = datetime.now(timezone.utc)
        await self._tokens_collection.insert_one({
            "_id": str(uuid.uuid4()),
            "userId": user_id,
            "tokenHash": TokenHasher.hash_token(refresh_token),
            "expiresAt": now + timedelta(seconds=self._refresh_ttl),
            "createdAt": now,
        })

        return {
            "accessToken": access_token,
            "refreshToken": refresh_token,
            "expiresIn": self._access_ttl,
            "tokenType": TOKEN_TYPE,
        }

    async def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Rotate a refresh token.

        Of several concurrent calls presenting the same token, exactly one
        succeeds; the others find the row already deleted.

        Returns:
            dict with ``user`` (document) and ``tokens`` (new pair)

        Raises:
            UnauthorizedException: Bad signature, expired, revoked or already rotated
            ForbiddenException: Owner deactivated
        """
        try:
            claims = self._jwt_auth.verify_token(refresh_token, self._refresh_secret)
        except ValueError:
            raise UnauthorizedException(message="Invalid refresh token", code="INVALID_REFRESH_TOKEN")

        user_id = claims.get("sub")
        if not user_id or claims.get("type") != REFRESH_CLAIM_TYPE:
            raise UnauthorizedException(message="Invalid refresh token", code="INVALID_REFRESH_TOKEN")

        stored = await self._tokens_collection.find_one({
            "tokenHash": TokenHasher.hash_token(refresh_token),
            "userId": user_id,
            "expiresAt": {"$gt": datetime.now(timezone.utc)},
        })
        if not stored:
            raise UnauthorizedException(message="Invalid refresh token", code="INVALID_REFRESH_TOKEN")

        user = await self._users_collection.find_one({"_id": user_id})
        if not user or not user.get("isActive", True):
            raise ForbiddenException(message="Account is deactivated", code="ACCOUNT_DEACTIVATED")

        result = await self._tokens_collection.delete_one({"_id": stored["_id"]})
        if result.deleted_count == 0:
            logger.warning(f"Refresh token for user {user_id} was already rotated")
            raise UnauthorizedException(message="Invalid refresh token", code="INVALID_REFRESH_TOKEN")

        tokens = await self.issue(user)
        logger.info(f"Refresh token rotated for user {user_id}")
        return {"user": user, "tokens": tokens}

    async def logout(self, user_id: str, refresh_token: Optional[str] = None) -> int:
        """
        Delete one refresh token of ``user_id``, or all of them.

        Returns:
            Number of tokens revoked
        """
        query: Dict[str, Any] = {"userId": user_id}
        if refresh_token:
            query["tokenHash"] = TokenHasher.hash_token(refresh_token)

        result = await self._tokens_collection.delete_many(query)
        logger.info(f"Revoked {result.deleted_count} refresh tokens for user {user_id}")
        return result.deleted_count

    async def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an access token.

        Raises:
            ValueError: Malformed, mis-signed or expired token, or a refresh
                token presented as an access token
        """
        claims = self._jwt_auth.verify_token(token, self._access_secret)
        if claims.get("type") == REFRESH_CLAIM_TYPE:
            raise ValueError("Refresh token used as access token")
        return claims

