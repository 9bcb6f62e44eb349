"""
Phone verification by one-time SMS code.

Codes are six random digits, valid for a few minutes, throttled per
(user, phone, purpose) and capped at a fixed number of verification tries.
"""

import asyncio
import logging
import math
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from common.sms import SMSProvider
from common.utils.exceptions import (
    RateLimitException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from salon.auth.models import OTPPurpose
from salon.auth.services.user_service import UserService
from salon.database.collections import OTP_VERIFICATIONS

logger = logging.getLogger(__name__)

CODE_DIGITS = 6


def generate_code() -> str:
    """Uniformly random numeric code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


class OTPService:
    """
    Issues and checks SMS verification codes.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        user_service: UserService,
        sms_provider: Optional[SMSProvider],
        expire_minutes: int = 10,
        resend_cooldown_seconds: int = 60,
        max_attempts: int = 5,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize OTPService.

        Args:
            db: MongoDB database connection
            user_service: Sets the phone-verified flag on success
            sms_provider: Delivery gateway; None when SMS is not configured
            expire_minutes: Code lifetime
            resend_cooldown_seconds: Minimum gap between sends per (user, phone, purpose)
            max_attempts: Verification tries evaluated per code
            timeout_seconds: Deadline for the SMS gateway call
        """
        self._db = db
        self._user_service = user_service
        self._sms = sms_provider
        self._expire_minutes = expire_minutes
        self._cooldown_seconds = resend_cooldown_seconds
        self._max_attempts = max_attempts
        self._timeout = timeout_seconds
        self._otp_collection = db[OTP_VERIFICATIONS]

    async def send(
        self,
        user_id: str,
        phone: str,
        purpose: Union[str, OTPPurpose] = OTPPurpose.REGISTRATION,
    ) -> dict:
        """
        Generate, store and text a new code.

        Returns:
            dict with expiresAt

        Raises:
            RateLimitException: A code was sent within the cooldown window
            ServiceUnavailableException: SMS not configured, failed or timed out
        """
        purpose = OTPPurpose(purpose)

        if self._sms is None:
            raise ServiceUnavailableException(
                message="SMS service not configured",
                code="SMS_NOT_CONFIGURED",
            )

        now = datetime.now(timezone.utc)
        await self.purge_expired(user_id, phone, now=now)

        recent = await self._otp_collection.find_one(
            {
                "userId": user_id,
                "phone": phone,
                "purpose": purpose.value,
                "createdAt": {"$gte": now - timedelta(seconds=self._cooldown_seconds)},
            },
            sort=[("createdAt", DESCENDING)],
        )
        if recent:
            elapsed = (now - recent["createdAt"]).total_seconds()
            retry_after = max(1, math.ceil(self._cooldown_seconds - elapsed))
            raise RateLimitException(
                message="Please wait before requesting another OTP",
                code="OTP_COOLDOWN",
                retry_after=retry_after,
            )

        code = generate_code()
        expires_at = now + timedelta(minutes=self._expire_minutes)

        await self._otp_collection.insert_one({
            "_id": str(uuid.uuid4()),
            "userId": user_id,
            "phone": phone,
            "code": code,
            "purpose": purpose.value,
            "verified": False,
            "attempts": 0,
            "expiresAt": expires_at,
            "createdAt": now,
        })

        body = (
            f"Your verification code is: {code}. "
            f"This code will expire in {self._expire_minutes} minutes."
        )

        try:
            await asyncio.wait_for(self._sms.send(phone, body), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"SMS dispatch to {phone} timed out after {self._timeout}s")
            raise ServiceUnavailableException(
                message="Failed to send verification code",
                code="SMS_TIMEOUT",
            )
        except ConnectionError as e:
            logger.error(f"SMS dispatch to {phone} failed: {e}")
            raise ServiceUnavailableException(
                message="Failed to send verification code",
                code="SMS_DELIVERY_FAILED",
            )

        logger.info(f"OTP sent to {phone} for user {user_id} ({purpose.value})")
        return {"expiresAt": expires_at}

    async def verify(
        self,
        user_id: str,
        phone: str,
        code: str,
        purpose: Union[str, OTPPurpose] = OTPPurpose.REGISTRATION,
    ) -> bool:
        """
        Check a code against the newest active one for (user, phone, purpose).

        Every call against an active code counts as an attempt. Once
        ``max_attempts`` tries have been evaluated the code is locked.

        Raises:
            UnauthorizedException: No active code, too many attempts, or mismatch
        """
        purpose = OTPPurpose(purpose)
        now = datetime.now(timezone.utc)

        # Atomic increment; the returned document holds the pre-increment count
        record = await self._otp_collection.find_one_and_update(
            {
                "userId": user_id,
                "phone": phone,
                "purpose": purpose.value,
                "verified": False,
                "expiresAt": {"$gt": now},
            },
            {"$inc": {"attempts": 1}},
            sort=[("createdAt", DESCENDING)],
            return_document=ReturnDocument.BEFORE,
        )

        if not record:
            raise UnauthorizedException(
                message="Invalid or expired verification code",
                code="OTP_INVALID_OR_EXPIRED",
            )

        if record.get("attempts", 0) >= self._max_attempts:
            raise UnauthorizedException(
                message="Too many verification attempts. Please request a new code.",
                code="OTP_TOO_MANY_ATTEMPTS",
            )

        # Bytes, so codes in non-ASCII digits are a mismatch rather than an error
        if not secrets.compare_digest(str(code).encode("utf-8"), record["code"].encode("utf-8")):
            raise UnauthorizedException(
                message="Invalid verification code",
                code="OTP_INVALID",
            )

        await self._otp_collection.update_one(
            {"_id": record["_id"]},
            {"$set": {"verified": True, "verifiedAt": now}},
        )

        if not await self._user_service.mark_phone_verified(user_id, phone):
            # Pre-registration verification, or the account holds another number
            logger.debug(f"No user {user_id} with phone {phone} to flag as verified")

        logger.info(f"Phone {phone} verified for user {user_id} ({purpose.value})")
        return True

    async def has_verified(
        self,
        phone: str,
        purpose: Union[str, OTPPurpose] = OTPPurpose.REGISTRATION,
        user_id: Optional[str] = None,
    ) -> bool:
        """
        Whether an unexpired code for ``phone`` (and ``user_id`` if given) was verified.

        A verified code stops counting once its own expiry passes.
        """
        query = {
            "phone": phone,
            "purpose": OTPPurpose(purpose).value,
            "verified": True,
            "expiresAt": {"$gt": datetime.now(timezone.utc)},
        }
        if user_id:
            query["userId"] = user_id
        return await self._otp_collection.find_one(query) is not None

    async def purge_expired(
        self,
        user_id: str,
        phone: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete expired codes for (user, phone). Returns number removed."""
        result = await self._otp_collection.delete_many({
            "userId": user_id,
            "phone": phone,
            "expiresAt": {"$lt": now or datetime.now(timezone.utc)},
        })
        if result.deleted_count:
            logger.debug(f"Purged {result.deleted_count} expired OTPs for user {user_id}")
        return result.deleted_count
