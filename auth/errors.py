"""
Domain errors raised by the auth service.

Each ``AuthError`` carries the HTTP status and the public ``detail`` the API
layer renders; anything else is left to propagate as a server fault.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class AuthError(Exception):
    status_code: int = 400
    detail: str = "Bad request"

    def __init__(self, detail: Optional[str] = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(AuthError):
    """One or more payload fields broke their rules."""

    status_code = 400
    detail = "Validation failed"

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))


class EmailConflict(AuthError):
    status_code = 409
    detail = "Email already registered"


class InvalidCredentials(AuthError):
    # Same message for unknown email and wrong password.
    status_code = 401
    detail = "Invalid email or password"


class Unauthorized(AuthError):
    """
    Missing, malformed or expired token, or the token's user is gone.

    ``reason`` is for logs only and never leaves the server.
    """

    status_code = 401
    detail = "Not authenticated"

    def __init__(self, reason: str = "missing_token") -> None:
        self.reason = reason
        super().__init__()


class NotFound(AuthError):
    status_code = 404
    detail = "User not found"


# ── Token errors (internal to the token service) ──────────────────────────


class TokenError(Exception):
    reason = "token_invalid"


class TokenInvalid(TokenError):
    reason = "token_invalid"


class TokenExpired(TokenError):
    reason = "token_expired"
