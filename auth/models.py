"""
Auth data types: stored user records, public projections and token payloads.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True)
class UserRecord:
    """A stored user. ``password_hash`` never leaves the service layer."""

    id: str
    name: str
    email: str
    password_hash: str
    age: int


@dataclass(frozen=True)
class RegistrationInput:
    name: str
    email: str
    password: str
    age: int


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    email: str
    iat: int
    exp: int


# ── Response schemas ───────────────────────────────────────────────────


class PublicUser(BaseModel):
    id: str
    name: str
    email: str
    age: int

    @classmethod
    def from_record(cls, record: UserRecord) -> "PublicUser":
        return cls(id=record.id, name=record.name, email=record.email, age=record.age)


class TokenResponse(BaseModel):
    access_token: str
