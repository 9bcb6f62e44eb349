"""
Token hashing utilities.

Refresh tokens are stored by digest only, never in plain form.
"""

import hashlib
import secrets


class TokenHasher:
    """
    Handles token generation and hashing.
    """

    @staticmethod
    def generate_token_id(length: int = 16) -> str:
        """
        Generate a random token identifier (``jti`` claim).

        Args:
            length: Number of random bytes (output will be hex, so 2x length)
        """
        return secrets.token_hex(length)

    @staticmethod
    def hash_token(token: str) -> str:
        """
        Create SHA-256 hash of a token.

        Args:
            token: Plain token string

        Returns:
            Hex-encoded SHA-256 hash
        """
        return hashlib.sha256(token.encode()).hexdigest()
