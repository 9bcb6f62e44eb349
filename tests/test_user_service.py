"""Unit tests for UserService: registration, login and verification flags."""

import asyncio

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    ServiceUnavailableException,
    UnauthorizedException,
    ValidationException,
)
from salon.auth.services.user_service import phone_to_email


async def _register_customer(user_service, password, email="a@x.com", **kwargs):
    return await user_service.register(
        email=email,
        password=password,
        first_name="A",
        last_name="B",
        role="CUSTOMER",
        **kwargs,
    )


# ─────────────────────────────────────────────────────────────────
# register
# ─────────────────────────────────────────────────────────────────


class TestRegister:
    @pytest.mark.asyncio
    async def test_customer_registration_creates_profile(self, user_service, fake_db, strong_password):
        user = await _register_customer(user_service, strong_password)

        assert user["role"] == "CUSTOMER"
        assert user["isActive"] is True
        assert user["passwordHash"] != strong_password
        profiles = fake_db["customerProfiles"].all({"userId": user["_id"]})
        assert len(profiles) == 1
        assert profiles[0]["loyaltyTier"] == "BRONZE"

    @pytest.mark.asyncio
    async def test_email_is_normalised(self, user_service, fake_db, strong_password):
        user = await _register_customer(user_service, strong_password, email="  Mixed@Example.COM ")

        assert user["email"] == "mixed@example.com"
        assert await user_service.get_user_by_email("MIXED@example.com") is not None

    @pytest.mark.asyncio
    async def test_salon_owner_without_salon_data(self, user_service, fake_db, strong_password):
        with pytest.raises(ValidationException) as exc_info:
            await user_service.register(
                email="owner@x.com",
                password=strong_password,
                first_name="O",
                last_name="W",
                role="SALON_OWNER",
            )

        assert exc_info.value.code == "SALON_DATA_REQUIRED"
        assert fake_db["users"].all() == []

    @pytest.mark.asyncio
    async def test_salon_owner_gets_salon_membership_and_staff(
        self, user_service, fake_db, strong_password, sample_salon_data
    ):
        user = await user_service.register(
            email="owner@x.com",
            password=strong_password,
            first_name="O",
            last_name="W",
            role="SALON_OWNER",
            salon_data=sample_salon_data,
        )

        assert user["role"] == "SALON_OWNER"
        salons = fake_db["salons"].all()
        assert len(salons) == 1
        assert salons[0]["name"] == "Studio Nord"
        assert salons[0]["email"] == "hello@studionord.se"
        assert salons[0]["subscriptionTier"] == "FREE"

        member = fake_db["salonMembers"].all({"userId": user["_id"]})[0]
        assert member["salonId"] == salons[0]["_id"]
        assert member["role"] == "OWNER"

        staff = fake_db["staff"].all({"userId": user["_id"]})[0]
        assert staff["salonId"] == salons[0]["_id"]
        assert staff["role"] == "OWNER"

        assert fake_db["customerProfiles"].all() == []

    @pytest.mark.asyncio
    async def test_owner_registration_is_atomic(
        self, user_service, fake_db, strong_password, sample_salon_data
    ):
        fake_db["salonMembers"].fail_next("insert_one", ServerSelectionTimeoutError("no primary"))

        with pytest.raises(ServiceUnavailableException) as exc_info:
            await user_service.register(
                email="owner@x.com",
                password=strong_password,
                first_name="O",
                last_name="W",
                role="SALON_OWNER",
                salon_data=sample_salon_data,
            )

        assert exc_info.value.status_code == 503
        assert exc_info.value.code == "DATABASE_UNAVAILABLE"
        assert fake_db["users"].all() == []
        assert fake_db["salons"].all() == []
        assert fake_db["salonMembers"].all() == []
        assert fake_db["staff"].all() == []
        assert fake_db.client.sessions[-1].aborted

    @pytest.mark.asyncio
    async def test_customer_registration_rolls_back_on_profile_failure(
        self, user_service, fake_db, strong_password
    ):
        fake_db["customerProfiles"].fail_next("insert_one", OperationFailure("write failed"))

        with pytest.raises(ServiceUnavailableException):
            await _register_customer(user_service, strong_password)

        assert fake_db["users"].all() == []

    @pytest.mark.parametrize("role", ["STAFF", "ADMIN"])
    @pytest.mark.asyncio
    async def test_staff_and_admin_forbidden_whatever_the_payload(
        self, user_service, fake_db, role, sample_salon_data
    ):
        # Weak password and full salon data: the role check still wins
        with pytest.raises(ForbiddenException):
            await user_service.register(
                email="x@x.com",
                password="weak",
                first_name="X",
                last_name="Y",
                role=role,
                salon_data=sample_salon_data,
            )

        assert fake_db["users"].all() == []

    @pytest.mark.asyncio
    async def test_invalid_role(self, user_service, strong_password):
        with pytest.raises(ValidationException) as exc_info:
            await user_service.register(
                email="x@x.com",
                password=strong_password,
                first_name="X",
                last_name="Y",
                role="SUPERUSER",
            )
        assert exc_info.value.code == "INVALID_ROLE"

    @pytest.mark.asyncio
    async def test_weak_password(self, user_service, fake_db):
        with pytest.raises(ValidationException) as exc_info:
            await _register_customer(user_service, "password")

        assert exc_info.value.code == "WEAK_PASSWORD"
        assert fake_db["users"].all() == []

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_service, fake_db, strong_password):
        await _register_customer(user_service, strong_password)

        with pytest.raises(ConflictException):
            await _register_customer(user_service, strong_password, email="A@X.com")

        assert len(fake_db["users"].all()) == 1
        assert len(fake_db["customerProfiles"].all()) == 1

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, user_service, fake_db, strong_password):
        await _register_customer(user_service, strong_password, phone="+46701234567")

        with pytest.raises(ConflictException):
            await _register_customer(
                user_service, strong_password, email="other@x.com", phone="+46701234567"
            )

        assert len(fake_db["users"].all()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_registrations_same_email(self, user_service, fake_db, strong_password):
        results = await asyncio.gather(
            _register_customer(user_service, strong_password),
            _register_customer(user_service, strong_password),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictException)]
        created = [r for r in results if isinstance(r, dict)]
        assert len(created) == 1
        assert len(conflicts) == 1
        assert len(fake_db["users"].all()) == 1
        assert len(fake_db["customerProfiles"].all()) == 1


# ─────────────────────────────────────────────────────────────────
# authenticate
# ─────────────────────────────────────────────────────────────────


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, user_service, strong_password):
        created = await _register_customer(user_service, strong_password)

        user = await user_service.authenticate("A@x.com", strong_password)

        assert user["_id"] == created["_id"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, user_service, strong_password):
        await _register_customer(user_service, strong_password)

        with pytest.raises(UnauthorizedException) as wrong_password:
            await user_service.authenticate("a@x.com", "wrong")
        with pytest.raises(UnauthorizedException) as unknown_email:
            await user_service.authenticate("nobody@x.com", "wrong")

        assert wrong_password.value.message == "Invalid credentials"
        assert wrong_password.value.detail == unknown_email.value.detail

    @pytest.mark.asyncio
    async def test_password_less_account(self, user_service, fake_db):
        fake_db["users"].seed({
            "_id": "u-oauth",
            "email": "oauth@x.com",
            "role": "CUSTOMER",
            "isActive": True,
        })

        with pytest.raises(UnauthorizedException) as exc_info:
            await user_service.authenticate("oauth@x.com", "")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_deactivated_account(self, user_service, fake_db, strong_password):
        user = await _register_customer(user_service, strong_password)
        await fake_db["users"].update_one({"_id": user["_id"]}, {"$set": {"isActive": False}})

        with pytest.raises(ForbiddenException) as exc_info:
            await user_service.authenticate("a@x.com", strong_password)
        assert exc_info.value.code == "ACCOUNT_DEACTIVATED"

    @pytest.mark.asyncio
    async def test_deactivated_account_with_wrong_password_does_not_leak_status(
        self, user_service, fake_db, strong_password
    ):
        user = await _register_customer(user_service, strong_password)
        await fake_db["users"].update_one({"_id": user["_id"]}, {"$set": {"isActive": False}})

        with pytest.raises(UnauthorizedException):
            await user_service.authenticate("a@x.com", "wrong")


# ─────────────────────────────────────────────────────────────────
# register_with_phone
# ─────────────────────────────────────────────────────────────────


class TestRegisterWithPhone:
    @pytest.mark.asyncio
    async def test_creates_phone_only_customer(self, user_service, fake_db):
        user = await user_service.register_with_phone("+46701234567", "Anna", "Svensson")

        assert user["email"] == "46701234567@phone.local"
        assert user["phone"] == "+46701234567"
        assert user["isPhoneVerified"] is True
        assert "passwordHash" not in user
        assert len(fake_db["customerProfiles"].all({"userId": user["_id"]})) == 1

    @pytest.mark.asyncio
    async def test_phone_already_registered(self, user_service, fake_db):
        await user_service.register_with_phone("+46701234567", "Anna", "Svensson")

        with pytest.raises(ConflictException) as exc_info:
            await user_service.register_with_phone("+46701234567", "Other", "Person")

        assert exc_info.value.message == "User with this phone number already exists"
        assert len(fake_db["users"].all()) == 1

    @pytest.mark.asyncio
    async def test_salon_owner_needs_salon_data(self, user_service, fake_db):
        with pytest.raises(ValidationException):
            await user_service.register_with_phone("+46701234567", "O", "W", role="SALON_OWNER")
        assert fake_db["users"].all() == []

    def test_phone_to_email_keeps_digits_only(self):
        assert phone_to_email("+1 (555) 010-0000") == "15550100000@phone.local"


# ─────────────────────────────────────────────────────────────────
# lookups and verification flags
# ─────────────────────────────────────────────────────────────────


class TestAccountUpdates:
    @pytest.mark.asyncio
    async def test_get_active_user(self, user_service, fake_db, strong_password):
        user = await _register_customer(user_service, strong_password)

        assert (await user_service.get_active_user(user["_id"]))["email"] == "a@x.com"

        with pytest.raises(UnauthorizedException):
            await user_service.get_active_user("missing")

        await fake_db["users"].update_one({"_id": user["_id"]}, {"$set": {"isActive": False}})
        with pytest.raises(ForbiddenException):
            await user_service.get_active_user(user["_id"])

    @pytest.mark.asyncio
    async def test_mark_phone_verified(self, user_service, strong_password):
        user = await _register_customer(user_service, strong_password, phone="+46701234567")

        assert await user_service.mark_phone_verified(user["_id"], "+46701234567") is True
        assert (await user_service.get_user_by_id(user["_id"]))["isPhoneVerified"] is True
        assert await user_service.mark_phone_verified("missing", "+46701234567") is False

    @pytest.mark.asyncio
    async def test_mark_phone_verified_ignores_other_numbers(self, user_service, strong_password):
        user = await _register_customer(user_service, strong_password, phone="+46701234567")

        assert await user_service.mark_phone_verified(user["_id"], "+46709999999") is False
        assert (await user_service.get_user_by_id(user["_id"]))["isPhoneVerified"] is False

    @pytest.mark.asyncio
    async def test_mark_phone_verified_without_phone_on_account(self, user_service, strong_password):
        user = await _register_customer(user_service, strong_password)

        assert await user_service.mark_phone_verified(user["_id"], "+46701234567") is False
        assert (await user_service.get_user_by_id(user["_id"]))["isPhoneVerified"] is False
