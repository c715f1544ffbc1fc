"""
JWT access-token creation and verification.

Tokens are compact HS256 JWTs carrying ``sub``, ``email``, ``iat`` and
``exp``.  Secret, lifetime and clock are passed in at construction; the
app wires them from ``config`` (env vars: ``JWT_SECRET``,
``JWT_EXPIRY_SECONDS``).
"""

from __future__ import annotations

import time
from typing import Callable

import jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.models import TokenClaims

_REQUIRED_CLAIMS = ("sub", "email", "iat", "exp")


class TokenService:
    def __init__(
        self,
        secret: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A token signing secret must be provided")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, sub: str, email: str) -> str:
        """Create a signed token for ``sub`` valid for ``ttl_seconds``."""
        now = int(self._clock())
        payload = {
            "sub": sub,
            "email": email,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        Raises ``TokenInvalid`` for malformed or tampered tokens and
        ``TokenExpired`` once ``exp`` is reached.  Expiry is checked against
        the injected clock, not inside PyJWT.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": list(_REQUIRED_CLAIMS)},
            )
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid(str(exc)) from exc

        try:
            claims = TokenClaims(
                sub=str(payload["sub"]),
                email=str(payload["email"]),
                iat=int(payload["iat"]),
                exp=int(payload["exp"]),
            )
        except (TypeError, ValueError) as exc:
            raise TokenInvalid(f"malformed claims: {exc}") from exc

        if claims.exp <= self._clock():
            raise TokenExpired("token expired")
        return claims
