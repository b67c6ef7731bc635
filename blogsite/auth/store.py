"""
Auth Store

Database access for the session subsystem: users by email, users by
session id, and session record creation/deletion. Every operation opens its
own database session from the shared factory so calls are independently
failable and can run after the request that started them has finished.

Failures are raised as StoreError subclasses (or the underlying SQLAlchemy
error); the session layer decides whether to swallow them.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from blogsite.models.session import Session
from blogsite.models.user import User


class StoreError(Exception):
    """Base exception for auth store lookups."""


class SessionNotFoundError(StoreError):
    """Raised when no session record matches the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"No user found for session {session_id[:8]}...")


class SessionExpiredError(StoreError):
    """Raised when the session record exists but has expired."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id[:8]}... expired. Please request a new magic link."
        )


def _parse_session_id(session_id: str) -> Optional[UUID]:
    try:
        return UUID(str(session_id))
    except ValueError:
        return None


class AuthStore:
    """Async store for users and session records."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        session_max_age: timedelta,
        renewal_window: timedelta,
    ):
        self._session_factory = session_factory
        self.session_max_age = session_max_age
        self.renewal_window = renewal_window

    async def find_user_by_email(self, email: str) -> Optional[User]:
        """Find a user by email address (case-insensitive)."""
        async with self._session_factory() as db:
            stmt = select(User).where(func.lower(User.email) == email.strip().lower())
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def find_user_by_session_id(self, session_id: str) -> User:
        """
        Resolve the user owning a session record.

        Expired records are deleted and reported as SessionExpiredError.
        Records close to expiring are extended to a full lifetime.
        """
        record_id = _parse_session_id(session_id)
        if record_id is None:
            raise SessionNotFoundError(session_id)

        async with self._session_factory() as db:
            record = await db.get(Session, record_id)
            if record is None:
                raise SessionNotFoundError(session_id)

            now = datetime.now(timezone.utc)
            if record.is_expired(now):
                await db.delete(record)
                await db.commit()
                raise SessionExpiredError(session_id)

            user = record.user
            if record.expires_within(self.renewal_window, now):
                record.extend_expiration(self.session_max_age, now)
                db.add(record)
                await db.commit()

            return user

    async def create_session_record(self, user_id: UUID) -> Session:
        """Create a new session record for the given user."""
        async with self._session_factory() as db:
            record = Session(
                user_id=user_id,
                expires_at=datetime.now(timezone.utc) + self.session_max_age,
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return record

    async def delete_session_record(self, session_id: str) -> bool:
        """
        Delete a session record.

        Returns True if a record was deleted, False if none matched.
        """
        record_id = _parse_session_id(session_id)
        if record_id is None:
            return False

        async with self._session_factory() as db:
            result = await db.execute(delete(Session).where(Session.id == record_id))
            await db.commit()
            return result.rowcount > 0

