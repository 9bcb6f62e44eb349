"""Unit tests for TokenService: issuing, rotation and revocation."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from common.utils.exceptions import ForbiddenException, UnauthorizedException
from salon.auth.services import TokenHasher


@pytest.fixture
def active_user(fake_db):
    now = datetime.now(timezone.utc)
    user = {
        "_id": "user-1",
        "email": "a@x.com",
        "firstName": "A",
        "lastName": "B",
        "role": "CUSTOMER",
        "isActive": True,
        "createdAt": now,
        "updatedAt": now,
    }
    fake_db["users"].seed(user)
    return user


class TestIssue:
    @pytest.mark.asyncio
    async def test_returns_pair_and_stores_refresh_hash(self, token_service, fake_db, active_user, jwt_auth, test_settings):
        tokens = await token_service.issue(active_user)

        assert tokens["tokenType"] == "Bearer"
        assert tokens["expiresIn"] == 900

        access = jwt_auth.verify_token(tokens["accessToken"], test_settings.JWT_SECRET)
        assert access["sub"] == "user-1"
        assert access["email"] == "a@x.com"
        assert access["role"] == "CUSTOMER"

        refresh = jwt_auth.verify_token(tokens["refreshToken"], test_settings.JWT_REFRESH_SECRET)
        assert refresh["type"] == "refresh"
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 60 * 60

        rows = fake_db["refreshTokens"].all()
        assert len(rows) == 1
        assert rows[0]["userId"] == "user-1"
        assert rows[0]["tokenHash"] == TokenHasher.hash_token(tokens["refreshToken"])
        assert tokens["refreshToken"] not in str(rows[0])

    @pytest.mark.asyncio
    async def test_tokens_use_distinct_secrets(self, token_service, active_user, jwt_auth, test_settings):
        tokens = await token_service.issue(active_user)

        with pytest.raises(ValueError):
            jwt_auth.verify_token(tokens["accessToken"], test_settings.JWT_REFRESH_SECRET)
        with pytest.raises(ValueError):
            jwt_auth.verify_token(tokens["refreshToken"], test_settings.JWT_SECRET)

    @pytest.mark.asyncio
    async def test_same_second_issues_differ(self, token_service, active_user, fake_db):
        first, second = await asyncio.gather(
            token_service.issue(active_user),
            token_service.issue(active_user),
        )

        assert first["refreshToken"] != second["refreshToken"]
        assert len(fake_db["refreshTokens"].all()) == 2


class TestRefresh:
    @pytest.mark.asyncio
    async def test_rotation_invalidates_old_token(self, token_service, fake_db, active_user):
        old = await token_service.issue(active_user)

        result = await token_service.refresh(old["refreshToken"])
        new = result["tokens"]

        assert result["user"]["_id"] == "user-1"
        assert new["refreshToken"] != old["refreshToken"]
        rows = fake_db["refreshTokens"].all()
        assert [r["tokenHash"] for r in rows] == [TokenHasher.hash_token(new["refreshToken"])]

        with pytest.raises(UnauthorizedException) as exc_info:
            await token_service.refresh(old["refreshToken"])
        assert exc_info.value.message == "Invalid refresh token"

        again = await token_service.refresh(new["refreshToken"])
        assert again["tokens"]["refreshToken"] != new["refreshToken"]

    @pytest.mark.asyncio
    async def test_concurrent_refresh_only_one_wins(self, token_service, fake_db, active_user):
        tokens = await token_service.issue(active_user)

        results = await asyncio.gather(
            token_service.refresh(tokens["refreshToken"]),
            token_service.refresh(tokens["refreshToken"]),
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, dict)]
        failures = [r for r in results if isinstance(r, UnauthorizedException)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert len(fake_db["refreshTokens"].all()) == 1

    @pytest.mark.asyncio
    async def test_signature_checked_with_refresh_secret(self, token_service, active_user, jwt_auth):
        forged = jwt_auth.create_token({"sub": "user-1", "type": "refresh"}, "wrong-secret", 60)

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(forged)

    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, token_service, active_user):
        tokens = await token_service.issue(active_user)

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(tokens["accessToken"])

    @pytest.mark.asyncio
    async def test_valid_signature_but_not_stored(self, token_service, active_user, jwt_auth, test_settings):
        unknown = jwt_auth.create_token(
            {"sub": "user-1", "type": "refresh", "jti": "never-stored"},
            test_settings.JWT_REFRESH_SECRET,
            60,
        )

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(unknown)

    @pytest.mark.asyncio
    async def test_stored_row_expired(self, token_service, fake_db, active_user):
        tokens = await token_service.issue(active_user)
        await fake_db["refreshTokens"].update_one(
            {"userId": "user-1"},
            {"$set": {"expiresAt": datetime.now(timezone.utc) - timedelta(seconds=1)}},
        )

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(tokens["refreshToken"])

    @pytest.mark.asyncio
    async def test_token_scoped_to_its_subject(self, token_service, fake_db, active_user):
        tokens = await token_service.issue(active_user)
        await fake_db["refreshTokens"].update_one({"userId": "user-1"}, {"$set": {"userId": "user-2"}})

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(tokens["refreshToken"])

    @pytest.mark.asyncio
    async def test_deactivated_owner(self, token_service, fake_db, active_user):
        tokens = await token_service.issue(active_user)
        await fake_db["users"].update_one({"_id": "user-1"}, {"$set": {"isActive": False}})

        with pytest.raises(ForbiddenException):
            await token_service.refresh(tokens["refreshToken"])

        # Not rotated: the row is still there
        assert len(fake_db["refreshTokens"].all()) == 1


class TestLogout:
    @pytest.mark.asyncio
    async def test_single_token(self, token_service, fake_db, active_user):
        first = await token_service.issue(active_user)
        second = await token_service.issue(active_user)

        assert await token_service.logout("user-1", first["refreshToken"]) == 1

        with pytest.raises(UnauthorizedException):
            await token_service.refresh(first["refreshToken"])
        assert (await token_service.refresh(second["refreshToken"]))["tokens"]

    @pytest.mark.asyncio
    async def test_token_of_another_user_is_untouched(self, token_service, fake_db, active_user):
        tokens = await token_service.issue(active_user)

        assert await token_service.logout("user-2", tokens["refreshToken"]) == 0
        assert len(fake_db["refreshTokens"].all()) == 1

    @pytest.mark.asyncio
    async def test_all_tokens(self, token_service, fake_db, active_user):
        other = {**active_user, "_id": "user-2", "email": "b@x.com"}
        fake_db["users"].seed(other)
        for _ in range(3):
            await token_service.issue(active_user)
        await token_service.issue(other)

        assert await token_service.logout("user-1") == 3
        assert [r["userId"] for r in fake_db["refreshTokens"].all()] == ["user-2"]


class TestVerifyAccessToken:
    @pytest.mark.asyncio
    async def test_access_token_accepted(self, token_service, active_user):
        tokens = await token_service.issue(active_user)

        claims = await token_service.verify_access_token(tokens["accessToken"])

        assert claims["sub"] == "user-1"

    @pytest.mark.asyncio
    async def test_refresh_token_rejected(self, token_service, active_user, jwt_auth, test_settings):
        # Same secret for both kinds: the type claim still tells them apart
        token = jwt_auth.create_token({"sub": "user-1", "type": "refresh"}, test_settings.JWT_SECRET, 60)

        with pytest.raises(ValueError):
            await token_service.verify_access_token(token)

