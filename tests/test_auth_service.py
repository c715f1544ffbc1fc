"""
Tests for AuthService: register, login, profile and user lookups.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from auth.errors import (
    EmailConflict,
    InvalidCredentials,
    NotFound,
    Unauthorized,
    ValidationError,
)
from auth.jwt import TokenService
from auth.password import PasswordHasher
from auth.service import AuthService, build_auth_service
from config.settings import Settings
from database.user_store import InMemoryUserStore

SECRET = "test-secret-key-that-is-long-enough-for-hs256"
TTL = 600


class FakeClock:
    def __init__(self, now: float = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _jean(**overrides) -> dict:
    payload = {
        "name": "Jean Dupont",
        "email": "Jean@Example.COM",
        "password": "Secure1!abc",
        "age": 30,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def service(store, clock) -> AuthService:
    return AuthService(
        store=store,
        hasher=PasswordHasher(rounds=4),
        tokens=TokenService(secret=SECRET, ttl_seconds=TTL, clock=clock),
    )


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_returns_token_for_new_user(self, service, store):
        result = await service.register(_jean())

        stored = await store.find_by_email("jean@example.com")
        assert stored is not None
        assert stored.name == "Jean Dupont"
        assert stored.age == 30

        claims = service.tokens.verify(result.access_token)
        assert claims.sub == stored.id
        assert claims.email == "jean@example.com"

    @pytest.mark.asyncio
    async def test_response_holds_only_the_token(self, service):
        result = await service.register(_jean())
        assert set(result.model_dump()) == {"access_token"}

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, service, store):
        await service.register(_jean())
        stored = await store.find_by_email("jean@example.com")
        assert stored.password_hash != "Secure1!abc"
        assert service.hasher.verify("Secure1!abc", stored.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_email_case_and_whitespace_insensitive(self, service, store):
        await service.register(_jean())
        with pytest.raises(EmailConflict):
            await service.register(_jean(email="  JEAN@example.com "))
        assert len(await store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_validation_errors_are_collected(self, service, store):
        with pytest.raises(ValidationError) as excinfo:
            await service.register(_jean(name="J", password="weak", age=7))
        assert len(excinfo.value.messages) == 4
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_short_name_example(self, service):
        with pytest.raises(ValidationError) as excinfo:
            await service.register(_jean(name="J", email="a@b.com"))
        assert excinfo.value.messages == ["Name must be at least 2 characters long"]

    @pytest.mark.asyncio
    async def test_store_level_conflict_surfaces_as_email_conflict(self, service, store):
        # Simulates losing the race between the lookup and the insert.
        store.find_by_email = AsyncMock(return_value=None)
        store.insert = AsyncMock(side_effect=EmailConflict())
        with pytest.raises(EmailConflict):
            await service.register(_jean())

    @pytest.mark.asyncio
    async def test_concurrent_registrations_keep_emails_unique(self, service, store):
        results = await asyncio.gather(
            service.register(_jean()),
            service.register(_jean(email="jean@example.com ")),
            return_exceptions=True,
        )
        conflicts = [r for r in results if isinstance(r, EmailConflict)]
        assert len(conflicts) == 1
        assert len(await store.list_all()) == 1


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_with_correct_password(self, service, store):
        await service.register(_jean())
        result = await service.login({"email": "JEAN@example.com", "password": "Secure1!abc"})
        stored = await store.find_by_email("jean@example.com")
        assert service.tokens.verify(result.access_token).sub == stored.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_identical(self, service):
        await service.register(_jean())

        with pytest.raises(InvalidCredentials) as wrong_password:
            await service.login({"email": "jean@example.com", "password": "wrong"})
        with pytest.raises(InvalidCredentials) as unknown_email:
            await service.login({"email": "nobody@example.com", "password": "wrong"})

        assert type(wrong_password.value) is type(unknown_email.value)
        assert wrong_password.value.detail == unknown_email.value.detail
        assert wrong_password.value.status_code == unknown_email.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_email_still_runs_a_hash_comparison(self, service):
        calls = []
        original = service.hasher.verify

        def spy(password, digest):
            calls.append(digest)
            return original(password, digest)

        service.hasher.verify = spy
        with pytest.raises(InvalidCredentials):
            await service.login({"email": "nobody@example.com", "password": "whatever"})
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_login_validation(self, service):
        with pytest.raises(ValidationError) as excinfo:
            await service.login({"email": "nope", "password": ""})
        assert excinfo.value.messages == [
            "Please provide a valid email address",
            "Password is required",
        ]


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile_returns_public_fields(self, service):
        token = (await service.register(_jean())).access_token
        profile = await service.get_profile(token)
        assert profile.model_dump().keys() == {"id", "name", "email", "age"}
        assert profile.email == "jean@example.com"

    @pytest.mark.asyncio
    async def test_garbage_token(self, service):
        with pytest.raises(Unauthorized) as excinfo:
            await service.get_profile("not-a-token")
        assert excinfo.value.reason == "token_invalid"

    @pytest.mark.asyncio
    async def test_expired_token(self, service, clock):
        token = (await service.register(_jean())).access_token
        clock.now += TTL + 1
        with pytest.raises(Unauthorized) as excinfo:
            await service.get_profile(token)
        assert excinfo.value.reason == "token_expired"

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, service):
        token = service.tokens.issue("3f1c9e2a-0000-4000-8000-000000000000", "gone@example.com")
        with pytest.raises(Unauthorized) as excinfo:
            await service.get_profile(token)
        assert excinfo.value.reason == "user_not_found"
        assert excinfo.value.status_code == 401


class TestLookups:
    @pytest.mark.asyncio
    async def test_list_users_hides_password_hash(self, service):
        await service.register(_jean())
        await service.register(_jean(name="Marie Curie", email="marie@example.com"))
        users = await service.list_users()
        assert [u.name for u in users] == ["Jean Dupont", "Marie Curie"]
        for user in users:
            assert "password_hash" not in user.model_dump()

    @pytest.mark.asyncio
    async def test_get_user_by_id(self, service, store):
        await service.register(_jean())
        stored = await store.find_by_email("jean@example.com")
        user = await service.get_user(stored.id)
        assert user.id == stored.id

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, service):
        with pytest.raises(NotFound):
            await service.get_user("does-not-exist")


class TestBuildAuthService:
    def test_wires_settings(self):
        settings = Settings(
            jwt_secret=SECRET,
            jwt_expiry_seconds=120,
            bcrypt_rounds=4,
            user_store_backend="memory",
        )
        service = build_auth_service(settings, InMemoryUserStore())
        assert service.hasher.rounds == 4
        assert service.tokens.ttl_seconds == 120
        assert service.tokens.algorithm == "HS256"
