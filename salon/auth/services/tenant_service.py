"""
Companion rows written alongside a new account.

Customers get a profile; salon owners get a salon with an OWNER membership
and an OWNER staff record. Every write takes the caller's transaction
session so the rows commit or roll back together with the user.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorClientSession

from salon.auth.models import (
    DEFAULT_LOYALTY_TIER,
    DEFAULT_SUBSCRIPTION_TIER,
    OWNER_ROLE,
)
from salon.auth.policy import RegistrationPlan
from salon.database.collections import (
    CUSTOMER_PROFILES,
    SALONS,
    SALON_MEMBERS,
    STAFF,
)

logger = logging.getLogger(__name__)


class TenantService:
    """
    Creates customer profiles and owner salons.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._profiles_collection = db[CUSTOMER_PROFILES]
        self._salons_collection = db[SALONS]
        self._members_collection = db[SALON_MEMBERS]
        self._staff_collection = db[STAFF]

    async def create_companions(
        self,
        user_id: str,
        plan: RegistrationPlan,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Dict[str, Any]:
        """
        Write the rows ``plan`` asks for.

        Returns:
            dict with the created ``profile`` and/or ``salon`` documents
        """
        created: Dict[str, Any] = {}

        if plan.create_customer_profile:
            created["profile"] = await self.create_customer_profile(user_id, session=session)

        if plan.salon is not None:
            created["salon"] = await self.create_owner_salon(user_id, plan.salon, session=session)

        return created

    async def create_customer_profile(
        self,
        user_id: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> dict:
        profile = {
            "_id": str(uuid.uuid4()),
            "userId": user_id,
            "preferences": {},
            "loyaltyTier": DEFAULT_LOYALTY_TIER,
            "createdAt": datetime.now(timezone.utc),
        }
        await self._profiles_collection.insert_one(profile, session=session)
        return profile

    async def create_owner_salon(
        self,
        user_id: str,
        salon_data: Dict[str, Any],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> dict:
        """
        Create a salon owned by ``user_id``.

        Args:
            user_id: Owner's user ID
            salon_data: Validated salon payload (salonName, salonAddress, ...)
            session: Transaction session shared with the user insert
        """
        now = datetime.now(timezone.utc)

        salon = {
            "_id": str(uuid.uuid4()),
            "name": salon_data["salonName"],
            "description": salon_data.get("salonDescription"),
            "address": salon_data["salonAddress"],
            "city": salon_data["salonCity"],
            "country": salon_data["salonCountry"],
            "phone": salon_data["salonPhone"],
            "email": salon_data["salonEmail"].lower(),
            "website": salon_data.get("salonWebsite"),
            "subscriptionTier": DEFAULT_SUBSCRIPTION_TIER,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        await self._salons_collection.insert_one(salon, session=session)

        await self._members_collection.insert_one(
            {
                "_id": str(uuid.uuid4()),
                "userId": user_id,
                "salonId": salon["_id"],
                "role": OWNER_ROLE,
                "isActive": True,
                "createdAt": now,
            },
            session=session,
        )

        await self._staff_collection.insert_one(
            {
                "_id": str(uuid.uuid4()),
                "salonId": salon["_id"],
                "userId": user_id,
                "role": OWNER_ROLE,
                "specialties": [],
                "isActive": True,
                "createdAt": now,
            },
            session=session,
        )

        logger.info(f"Salon {salon['_id']} created for owner {user_id}")
        return salon
