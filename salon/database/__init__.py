"""
Salon database module - collection names and indexes.
"""

from salon.database.collections import (
    USERS,
    REFRESH_TOKENS,
    OTP_VERIFICATIONS,
    CUSTOMER_PROFILES,
    SALONS,
    SALON_MEMBERS,
    STAFF,
    ensure_indexes,
)

__all__ = [
    "USERS",
    "REFRESH_TOKENS",
    "OTP_VERIFICATIONS",
    "CUSTOMER_PROFILES",
    "SALONS",
    "SALON_MEMBERS",
    "STAFF",
    "ensure_indexes",
]
