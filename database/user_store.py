"""
User stores — persistence behind the auth service.

``SqlUserStore`` is the production backend (unique constraint on
``users.email``); ``InMemoryUserStore`` keeps everything in a dict and is
selected with ``USER_STORE_BACKEND=memory``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.errors import EmailConflict
from auth.models import UserRecord
from database.models import User

logger = logging.getLogger(__name__)


def _to_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return None


class UserStore(ABC):
    """Abstract user persistence.  Emails arrive already normalized."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def insert(self, name: str, email: str, password_hash: str, age: int) -> UserRecord:
        """
        Create a user with a fresh id.

        Raises ``EmailConflict`` if the email is already taken; the check
        and the write are atomic.
        """
        ...

    @abstractmethod
    async def list_all(self) -> List[UserRecord]:
        ...


# ── SQL ─────────────────────────────────────────────────────────────────


def _record(user: User) -> UserRecord:
    return UserRecord(
        id=str(user.user_id),
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        age=user.age,
    )


class SqlUserStore(UserStore):
    """One short-lived session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        return _record(user) if user is not None else None

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        uid = _to_uuid(user_id)
        if uid is None:
            return None
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.user_id == uid))
            user = result.scalar_one_or_none()
        return _record(user) if user is not None else None

    async def insert(self, name: str, email: str, password_hash: str, age: int) -> UserRecord:
        user = User(
            user_id=uuid.uuid4(),
            name=name,
            email=email,
            password_hash=password_hash,
            age=age,
        )
        async with self._session_factory() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                # users.email is the only unique column besides the generated key
                logger.info("Insert rejected by unique email constraint")
                raise EmailConflict() from exc
        return _record(user)

    async def list_all(self) -> List[UserRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).order_by(User.created_at, User.user_id))
            users = result.scalars().all()
        return [_record(u) for u in users]


# ── In-memory ───────────────────────────────────────────────────────────


class InMemoryUserStore(UserStore):
    """Process-local store; data is lost on restart."""

    def __init__(self) -> None:
        self._by_id: Dict[str, UserRecord] = {}
        self._id_by_email: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        user_id = self._id_by_email.get(email)
        return self._by_id.get(user_id) if user_id else None

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        return self._by_id.get(user_id)

    async def insert(self, name: str, email: str, password_hash: str, age: int) -> UserRecord:
        async with self._lock:
            if email in self._id_by_email:
                raise EmailConflict()
            record = UserRecord(
                id=str(uuid.uuid4()),
                name=name,
                email=email,
                password_hash=password_hash,
                age=age,
            )
            self._by_id[record.id] = record
            self._id_by_email[email] = record.id
        return record

    async def list_all(self) -> List[UserRecord]:
        return list(self._by_id.values())
