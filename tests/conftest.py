"""
Blog backend: pytest fixtures and configuration.

Provides:
- Test environment variables (set before any blogsite import)
- A throwaway SQLite database per test
- A SessionService wired to that database
- An HTTP client for the FastAPI app
"""
import asyncio
import os
from datetime import datetime, timezone
from typing import Optional

# Settings are read at import time by several modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.pytest_blogsite_unused.db")
os.environ.setdefault("SESSION_SECRETS", "test-session-secret-0123456789abcdef-primary")
os.environ["RESEND_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "development"
os.environ["SITE_URL"] = "http://testserver"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.requests import Request

import blogsite.auth.session as auth_session
from blogsite.auth.session import SessionService
from blogsite.core.config import SessionConfig
from blogsite.models import Base
from blogsite.models.user import Team, User, UserRole

SECRET = "test-session-secret-0123456789abcdef-primary"
OLD_SECRET = "test-session-secret-0123456789abcdef-retired"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def make_request(
    path: str = "/",
    query_string: str = "",
    cookie: Optional[str] = None,
) -> Request:
    """Build a bare Starlette request carrying an optional Cookie header."""
    headers = []
    if cookie:
        headers.append((b"cookie", cookie.encode("latin-1")))
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "root_path": "",
        "path": path,
        "query_string": query_string.encode("latin-1"),
        "headers": headers,
    }
    return Request(scope)


def cookie_pair(set_cookie: str) -> str:
    """Turn a Set-Cookie value into the ``name=value`` sent back by a browser."""
    return set_cookie.split(";", 1)[0]


# =============================================================================
# Database
# =============================================================================
@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'blogsite.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def create_user(session_factory):
    async def _create(
        email: str = "reader@example.com",
        role: UserRole = UserRole.USER,
        team: Team = Team.UNKNOWN,
        first_name: str = "Reader",
    ) -> User:
        async with session_factory() as db:
            user = User(email=email, role=role, team=team, first_name=first_name)
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user

    return _create


# =============================================================================
# Session subsystem
# =============================================================================
@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(secrets=[SECRET])


@pytest_asyncio.fixture
async def sessions(session_config, session_factory):
    service = SessionService(session_config, session_factory)
    yield service
    # let sign-out cleanup finish before the database goes away
    pending = list(auth_session._background_tasks)
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


@pytest_asyncio.fixture
async def signed_in_cookie(sessions):
    """Return a helper producing the auth cookie for a freshly signed-in user."""
    async def _sign_in(user: User) -> str:
        handle = sessions.get_session(make_request())
        await handle.sign_in(user)
        return cookie_pair(handle.commit())

    return _sign_in


# =============================================================================
# HTTP Client
# =============================================================================
@pytest_asyncio.fixture
async def client(sessions, session_factory):
    from blogsite.db import get_session
    from blogsite.main import app

    async def _get_test_session():
        async with session_factory() as db:
            yield db

    previous = app.state.sessions
    app.state.sessions = sessions
    app.dependency_overrides[get_session] = _get_test_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client

    app.dependency_overrides.clear()
    app.state.sessions = previous
