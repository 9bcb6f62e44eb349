"""
User service for account lifecycle management.

Handles account creation (with the companion rows the registration policy
requires), credential checks and the phone verification flag.
"""

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from common.auth.jwt_auth import JWTAuth
from common.database import start_transaction
from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from common.utils.password import ensure_strong_password
from salon.auth.models import PHONE_EMAIL_DOMAIN, UserRole
from salon.auth.policy import RegistrationPlan, RegistrationPolicy
from salon.auth.services.tenant_service import TenantService
from salon.database.collections import USERS

logger = logging.getLogger(__name__)


class UserService:
    """
    Manages user accounts and credentials.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        jwt_auth: JWTAuth,
        tenant_service: TenantService,
        policy: Optional[RegistrationPolicy] = None,
    ):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
            jwt_auth: Password hashing primitives
            tenant_service: Writes profile/salon rows inside the user transaction
            policy: Self-registration role gate
        """
        self._db = db
        self._jwt_auth = jwt_auth
        self._tenant_service = tenant_service
        self._policy = policy or RegistrationPolicy()
        self._users_collection = db[USERS]

    # ─────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return await self._users_collection.find_one({"_id": user_id})

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        return await self._users_collection.find_one({"email": email.strip().lower()})

    async def get_active_user(self, user_id: str) -> dict:
        """
        Fetch a user who is allowed to act.

        Raises:
            UnauthorizedException: User no longer exists
            ForbiddenException: User is deactivated
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            raise UnauthorizedException(message="User not found", code="USER_NOT_FOUND")
        if not user.get("isActive", True):
            raise ForbiddenException(message="Account is deactivated", code="ACCOUNT_DEACTIVATED")
        return user

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        role: Union[str, UserRole, None] = UserRole.CUSTOMER,
        salon_data: Optional[dict] = None,
    ) -> dict:
        """
        Create a password account.

        Args:
            email: Login email (stored lower-cased)
            password: Plaintext password, hashed before storage
            first_name: Given name
            last_name: Family name
            phone: Optional E.164 phone number
            role: Requested role (CUSTOMER or SALON_OWNER may self-register)
            salon_data: Salon payload, required for SALON_OWNER

        Returns:
            Created user document

        Raises:
            ForbiddenException: STAFF or ADMIN role
            ValidationException: Unknown role, missing salon data, weak password
            ConflictException: Email or phone already registered
        """
        # Role gate first: STAFF/ADMIN fail regardless of the rest of the payload
        plan = self._policy.evaluate(role, salon_data)
        ensure_strong_password(password)

        email = email.strip().lower()
        await self._ensure_available(email=email, phone=phone)

        password_hash = await asyncio.to_thread(self._jwt_auth.hash_password, password)

        user = self.build_user(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=plan.role,
            phone=phone,
            password_hash=password_hash,
        )
        await self.create_account(user, plan)

        logger.info(f"User registered: {user['_id']} ({plan.role.value})")
        return user

    async def register_with_phone(
        self,
        phone: str,
        first_name: str,
        last_name: str,
        role: Union[str, UserRole, None] = UserRole.CUSTOMER,
    ) -> dict:
        """
        Create a phone-only account (no password, synthetic email).

        Callers must have confirmed phone ownership first.

        Raises:
            ValidationException: Role needs data a phone signup cannot carry
            ForbiddenException: STAFF or ADMIN role
            ConflictException: Phone already registered
        """
        plan = self._policy.evaluate(role)

        email = phone_to_email(phone)
        await self._ensure_available(email=email, phone=phone, message="User with this phone number already exists")

        user = self.build_user(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=plan.role,
            phone=phone,
            is_phone_verified=True,
        )
        await self.create_account(user, plan)

        logger.info(f"Phone user registered: {user['_id']}")
        return user

    async def create_account(self, user: dict, plan: RegistrationPlan) -> None:
        """
        Insert ``user`` and its companion rows in one transaction.

        Raises:
            ConflictException: A unique index rejected the write (concurrent signup)
            ServiceUnavailableException: The database failed; nothing was written
        """
        try:
            async with start_transaction(self._db) as session:
                await self._users_collection.insert_one(user, session=session)
                await self._tenant_service.create_companions(user["_id"], plan, session=session)
        except DuplicateKeyError:
            logger.warning(f"Duplicate key while creating user {user.get('email')}")
            raise ConflictException(
                message="User with this email or phone already exists",
                code="USER_EXISTS",
            )
        except PyMongoError as e:
            logger.error(f"Database error while creating user {user.get('email')}: {e}")
            raise ServiceUnavailableException(
                message="Database temporarily unavailable",
                code="DATABASE_UNAVAILABLE",
            )

    def build_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        phone: Optional[str] = None,
        password_hash: Optional[str] = None,
        avatar: Optional[str] = None,
        is_email_verified: bool = False,
        is_phone_verified: bool = False,
    ) -> dict:
        """Build a new, not yet persisted, user document."""
        now = datetime.now(timezone.utc)
        user = {
            "_id": str(uuid.uuid4()),
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "role": role.value,
            "isActive": True,
            "isEmailVerified": is_email_verified,
            "isPhoneVerified": is_phone_verified,
            "createdAt": now,
            "updatedAt": now,
        }
        # Sparse unique fields are omitted rather than stored as null
        if phone:
            user["phone"] = phone
        if password_hash:
            user["passwordHash"] = password_hash
        if avatar:
            user["avatar"] = avatar
        return user

    async def _ensure_available(
        self,
        email: str,
        phone: Optional[str],
        message: str = "User with this email or phone already exists",
    ) -> None:
        conditions = [{"email": email}]
        if phone:
            conditions.append({"phone": phone})

        if await self._users_collection.find_one({"$or": conditions}):
            raise ConflictException(message=message, code="USER_EXISTS")

    # ─────────────────────────────────────────────────────────────────
    # Credentials
    # ─────────────────────────────────────────────────────────────────

    async def authenticate(self, email: str, password: str) -> dict:
        """
        Check email and password.

        Unknown email, wrong password and password-less accounts all raise
        the same error.

        Raises:
            UnauthorizedException: Invalid credentials
            ForbiddenException: Account deactivated (only after the password matched)
        """
        user = await self.get_user_by_email(email)
        password_hash = user.get("passwordHash") if user else None

        if not password_hash or not await asyncio.to_thread(
            self._jwt_auth.verify_password, password, password_hash
        ):
            raise UnauthorizedException(message="Invalid credentials", code="INVALID_CREDENTIALS")

        if not user.get("isActive", True):
            raise ForbiddenException(message="Account is deactivated", code="ACCOUNT_DEACTIVATED")

        return user

    # ─────────────────────────────────────────────────────────────────
    # Updates and verification flags
    # ─────────────────────────────────────────────────────────────────

    async def update_user(self, user_id: str, fields: dict) -> None:
        """
        Set ``fields`` on a user.

        Raises:
            ConflictException: A unique field (phone, provider id) is taken
        """
        try:
            await self._users_collection.update_one(
                {"_id": user_id},
                {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}},
            )
        except DuplicateKeyError:
            raise ConflictException(
                message="Account details are already used by another user",
                code="USER_EXISTS",
            )

    async def mark_phone_verified(self, user_id: str, phone: str) -> bool:
        """
        Set ``isPhoneVerified`` when ``phone`` is the number on the account.

        Returns False when no user with that id holds that phone.
        """
        result = await self._users_collection.update_one(
            {"_id": user_id, "phone": phone},
            {"$set": {"isPhoneVerified": True, "updatedAt": datetime.now(timezone.utc)}},
        )
        return result.matched_count > 0


def phone_to_email(phone: str) -> str:
    """Synthetic email for phone-only accounts: ``+1 555-0100`` -> ``15550100@phone.local``."""
    return f"{re.sub(r'[^0-9]', '', phone)}@{PHONE_EMAIL_DOMAIN}"
