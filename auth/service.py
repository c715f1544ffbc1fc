"""
AuthService — registration, login and profile lookups.

Composes the payload validator, the password hasher, the token service and
a ``UserStore``.  Raises the domain errors from ``auth.errors``; the API
layer maps them to HTTP responses.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from auth.errors import (
    EmailConflict,
    InvalidCredentials,
    NotFound,
    TokenError,
    Unauthorized,
    ValidationError,
)
from auth.jwt import TokenService
from auth.models import LoginInput, PublicUser, RegistrationInput, TokenResponse
from auth.password import PasswordHasher
from auth.validation import LOGIN_SCHEMA, REGISTRATION_SCHEMA, validate
from database.user_store import UserStore

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        tokens: TokenService,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self._dummy_hash: Optional[str] = None

    # ── Registration / login ────────────────────────────────────────────

    async def register(self, payload: Any) -> TokenResponse:
        """Create a user and return an access token (no user body)."""
        outcome = validate(payload, REGISTRATION_SCHEMA)
        if not outcome.ok:
            raise ValidationError(outcome.errors)
        data: RegistrationInput = outcome.value

        if await self.store.find_by_email(data.email) is not None:
            raise EmailConflict()

        password_hash = await asyncio.to_thread(self.hasher.hash, data.password)
        # A concurrent registration can still win the race; the store's
        # unique constraint turns that into EmailConflict as well.
        user = await self.store.insert(data.name, data.email, password_hash, data.age)
        logger.info("Registered user %s", user.id)

        return TokenResponse(access_token=self.tokens.issue(user.id, user.email))

    async def login(self, payload: Any) -> TokenResponse:
        """Check email/password and return an access token."""
        outcome = validate(payload, LOGIN_SCHEMA)
        if not outcome.ok:
            raise ValidationError(outcome.errors)
        data: LoginInput = outcome.value

        user = await self.store.find_by_email(data.email)
        if user is None:
            # Burn the same bcrypt cost so timing does not reveal unknown emails.
            await asyncio.to_thread(self.hasher.verify, data.password, await self._get_dummy_hash())
            logger.info("Login rejected: unknown email")
            raise InvalidCredentials()

        if not await asyncio.to_thread(self.hasher.verify, data.password, user.password_hash):
            logger.info("Login rejected: wrong password for %s", user.id)
            raise InvalidCredentials()

        logger.info("Login: %s", user.id)
        return TokenResponse(access_token=self.tokens.issue(user.id, user.email))

    # ── Lookups ─────────────────────────────────────────────────────────

    async def get_profile(self, token: str) -> PublicUser:
        """Resolve a bearer token to the user it was issued for."""
        try:
            claims = self.tokens.verify(token)
        except TokenError as exc:
            logger.warning("Rejected token (%s): %s", exc.reason, exc)
            raise Unauthorized(exc.reason) from exc

        user = await self.store.find_by_id(claims.sub)
        if user is None:
            logger.warning("Rejected token (user_not_found): sub=%s", claims.sub)
            raise Unauthorized("user_not_found")
        return PublicUser.from_record(user)

    async def list_users(self) -> List[PublicUser]:
        return [PublicUser.from_record(u) for u in await self.store.list_all()]

    async def get_user(self, user_id: str) -> PublicUser:
        user = await self.store.find_by_id(user_id)
        if user is None:
            raise NotFound()
        return PublicUser.from_record(user)

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(self.hasher.hash, "dummy-password-for-timing")
        return self._dummy_hash


def build_auth_service(settings, store: UserStore) -> AuthService:
    """Wire an ``AuthService`` from settings and an already-built store."""
    return AuthService(
        store=store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenService(
            secret=settings.jwt_secret,
            ttl_seconds=settings.jwt_expiry_seconds,
            algorithm=settings.jwt_algorithm,
        ),
    )
