"""
User Data Models and Database Schema

This module defines the user data model for the site, including the
SQLAlchemy table definition and the SQLModel schema used for API
serialization. Users sign in with magic links only, so there is no
password column; the role decides access to admin pages and the team
feeds the blog read rankings.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates
from sqlmodel import SQLModel


class UserRole(str, enum.Enum):
    """Access level of a user."""
    USER = "USER"
    ADMIN = "ADMIN"


class Team(str, enum.Enum):
    """Reader team used for read rankings."""
    BLUE = "BLUE"
    RED = "RED"
    YELLOW = "YELLOW"
    UNKNOWN = "UNKNOWN"


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all database models."""
    pass


class User(Base):
    """Site account identified by email."""

    __tablename__ = "user"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    email: Mapped[str] = mapped_column(
        String(320),
        unique=True,
        index=True,
        nullable=False,
        comment="Email address the user signs in with",
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        default="",
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role_enum"),
        default=UserRole.USER,
        server_default=UserRole.USER.value,
        nullable=False,
    )

    team: Mapped[Team] = mapped_column(
        Enum(Team, name="team_enum"),
        default=Team.UNKNOWN,
        server_default=Team.UNKNOWN.value,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @validates("email")
    def normalize_email(self, key: str, value: str) -> str:
        # stored lowercase so the unique index also holds case-insensitively
        return value.strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserRead(SQLModel):
    """User data schema for API responses."""
    id: UUID
    email: str
    first_name: str
    role: UserRole
    team: Team

    @classmethod
    def from_user(cls, user: User) -> "UserRead":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            role=user.role,
            team=user.team,
        )

