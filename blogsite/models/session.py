"""
Session Record Models

This module defines the server-side session record. A record is created when
a magic link is redeemed; its id is the token kept in the signed session
cookie. Records are deleted on sign-out and once found expired.
"""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blogsite.models.user import Base

if TYPE_CHECKING:
    from blogsite.models.user import User


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Session(Base):
    """Server-side session record for magic link authentication."""

    __tablename__ = "session"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User this session belongs to"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="When the session was created"
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the session expires"
    )

    user: Mapped["User"] = relationship(lazy="joined")

    def is_expired(self, now: datetime) -> bool:
        """Check if the session has expired."""
        return now > _as_utc(self.expires_at)

    def expires_within(self, window: timedelta, now: datetime) -> bool:
        return now + window > _as_utc(self.expires_at)

    def extend_expiration(self, lifetime: timedelta, now: datetime) -> None:
        """Push the expiration to ``now + lifetime``."""
        self.expires_at = now + lifetime
