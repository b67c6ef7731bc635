"""
Post Read Models

One row per blog post read. Reads by signed-in users are attributed to the
user; anonymous reads are attributed to the client-identity cookie so the
same visitor is counted once as a reader.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from blogsite.models.user import Base


class PostRead(Base):
    """A single read of a blog post."""

    __tablename__ = "post_read"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (client_id IS NULL)",
            name="ck_post_read_single_reader",
        ),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    post_slug: Mapped[str] = mapped_column(String(200), index=True, nullable=False)

    user_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    client_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        comment="Anonymous client identity from the client-id cookie",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
