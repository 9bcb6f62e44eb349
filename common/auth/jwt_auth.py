"""
JWT signing and bcrypt password hashing.

Token lifetimes and secrets are supplied per call so one instance can sign
both access tokens and refresh tokens with distinct secrets.

Example:
    auth = JWTAuth(bcrypt_rounds=12)

    password_hash = auth.hash_password("Abc123!@")
    assert auth.verify_password("Abc123!@", password_hash)

    token = auth.create_token({"sub": user_id, "role": "CUSTOMER"}, secret, 900)
    claims = auth.verify_token(token, secret)
    print(claims["sub"])  # user_id
"""

import base64
import hashlib
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import bcrypt as bcrypt_lib
from jose import jwt, JWTError


class JWTAuth:
    """
    JWT + bcrypt primitives.

    Stateless: revocation and persistence belong to the caller.
    """

    def __init__(
        self,
        algorithm: str = "HS256",
        bcrypt_rounds: int = 12,
    ):
        """
        Initialize JWT auth helper.

        Args:
            algorithm: JWT algorithm (default: HS256)
            bcrypt_rounds: bcrypt cost factor used for new hashes
        """
        self.algorithm = algorithm
        self.bcrypt_rounds = bcrypt_rounds

    def _prehash_password(self, password: str) -> str:
        """
        Pre-hash password with SHA-256 before bcrypt.

        This handles bcrypt's 72-byte limit and ensures consistent
        behavior across all password lengths.
        """
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash).decode("utf-8")

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        prehashed = self._prehash_password(password)
        salt = bcrypt_lib.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt_lib.hashpw(prehashed.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        """
        Verify a password against its hash.

        Accepts both SHA-256 pre-hashed digests and plain bcrypt digests
        (accounts imported from the previous backend).
        """
        if not hashed:
            return False

        hashed_bytes = hashed.encode("utf-8")

        prehashed = self._prehash_password(password)
        try:
            if bcrypt_lib.checkpw(prehashed.encode("utf-8"), hashed_bytes):
                return True
        except ValueError:
            return False

        try:
            return bcrypt_lib.checkpw(password.encode("utf-8"), hashed_bytes)
        except ValueError:
            # Password too long for direct bcrypt - definitely not a match
            return False

    def create_token(
        self,
        claims: Dict[str, Any],
        secret: str,
        expires_in_seconds: int,
    ) -> str:
        """Sign ``claims`` into a JWT that expires after ``expires_in_seconds``."""
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + timedelta(seconds=expires_in_seconds),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify_token(self, token: str, secret: str) -> Dict[str, Any]:
        """
        Verify signature and expiry, returning the decoded claims.

        Raises:
            ValueError: If the token is malformed, mis-signed or expired
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
