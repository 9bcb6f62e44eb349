"""
Salon collection accessors.

Provides collection names and the index set the auth flows rely on.
Refresh tokens and OTP codes are removed by MongoDB once ``expiresAt`` passes.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

logger = logging.getLogger(__name__)

USERS = "users"
REFRESH_TOKENS = "refreshTokens"
OTP_VERIFICATIONS = "otpVerifications"
CUSTOMER_PROFILES = "customerProfiles"
SALONS = "salons"
SALON_MEMBERS = "salonMembers"
STAFF = "staff"

# Optional identifiers are only unique when present
_PRESENT = {"$type": "string"}


INDEXES = {
    USERS: [
        IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
        IndexModel(
            [("phone", ASCENDING)],
            unique=True,
            partialFilterExpression={"phone": _PRESENT},
            name="phone_unique",
        ),
        IndexModel(
            [("googleId", ASCENDING)],
            unique=True,
            partialFilterExpression={"googleId": _PRESENT},
            name="googleId_unique",
        ),
        IndexModel(
            [("appleId", ASCENDING)],
            unique=True,
            partialFilterExpression={"appleId": _PRESENT},
            name="appleId_unique",
        ),
    ],
    REFRESH_TOKENS: [
        IndexModel([("tokenHash", ASCENDING)], unique=True, name="tokenHash_unique"),
        IndexModel([("userId", ASCENDING), ("expiresAt", ASCENDING)], name="user_expiry"),
        IndexModel([("expiresAt", ASCENDING)], expireAfterSeconds=0, name="expiresAt_ttl"),
    ],
    OTP_VERIFICATIONS: [
        IndexModel(
            [
                ("userId", ASCENDING),
                ("phone", ASCENDING),
                ("purpose", ASCENDING),
                ("createdAt", DESCENDING),
            ],
            name="user_phone_purpose_created",
        ),
        IndexModel([("expiresAt", ASCENDING)], expireAfterSeconds=0, name="expiresAt_ttl"),
    ],
    CUSTOMER_PROFILES: [
        IndexModel([("userId", ASCENDING)], unique=True, name="userId_unique"),
    ],
    SALON_MEMBERS: [
        IndexModel(
            [("userId", ASCENDING), ("salonId", ASCENDING)],
            unique=True,
            name="user_salon_unique",
        ),
    ],
    STAFF: [
        IndexModel([("salonId", ASCENDING), ("userId", ASCENDING)], name="salon_user"),
    ],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the unique, lookup and expiry indexes.

    Called once at application startup. Uniqueness of email, phone, provider
    ids and refresh tokens is enforced here, not by application locks.
    """
    for collection_name, indexes in INDEXES.items():
        names = await db[collection_name].create_indexes(indexes)
        logger.debug(f"Indexes ensured on {collection_name}: {names}")

    logger.info("Database indexes ensured")
