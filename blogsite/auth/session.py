"""
Session Management Service

This module provides the cookie-session authentication used across the site.
The browser holds a signed session cookie whose only reserved key is the id
of a server-side session record; the record maps to a user.

Features:
- Request-scoped session handles that emit Set-Cookie only when changed
- User resolution that degrades every lookup failure to "not logged in"
- Sign-in by session record creation, sign-out with background cleanup
- Magic link sign-in and the require_user / require_admin_user guards

SessionService is built once at startup from an explicit SessionConfig and
kept on the application state.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Set, Union

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from blogsite.auth.client import ClientSession, ClientSessionStorage
from blogsite.auth.cookies import CookieCodec, CookieSession, CookieStorage
from blogsite.auth.magic_link import MagicLinkService
from blogsite.auth.store import AuthStore
from blogsite.core.config import SessionConfig
from blogsite.core.email import send_magic_link_email
from blogsite.models.user import User

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "blogsite_root_session"
SESSION_ID_KEY = "__session_id__"
LOGIN_PATH = "/login"
HOME_PATH = "/"

Continuation = Callable[[User], Union[Response, Awaitable[Response]]]

# strong references so pending cleanup tasks are not garbage collected
_background_tasks: Set[asyncio.Task] = set()


def _short(token: str) -> str:
    return token[:8] + "..."


class AuthSession(CookieSession):
    """Request-scoped authentication session."""

    def __init__(self, storage: CookieStorage, data: dict, store: AuthStore):
        super().__init__(storage, data)
        self.store = store

    def get_session_id(self) -> Optional[str]:
        session_id = self.get(SESSION_ID_KEY)
        return session_id if isinstance(session_id, str) else None

    def unset_session_id(self) -> None:
        self.unset(SESSION_ID_KEY)

    async def get_user(self) -> Optional[User]:
        """
        Resolve the signed-in user.

        A failed lookup also drops the stale session id so the next commit
        clears it from the browser.
        """
        session_id = self.get_session_id()
        if not session_id:
            return None

        try:
            return await self.store.find_user_by_session_id(session_id)
        except Exception as e:
            self.unset_session_id()
            logger.error("Failure getting user from session ID %s: %s", _short(session_id), str(e))
            return None

    async def sign_in(self, user: User) -> None:
        """Create a session record for ``user`` and point this session at it."""
        record = await self.store.create_session_record(user.id)
        self.set(SESSION_ID_KEY, str(record.id))
        logger.info("Session %s created for user %s", _short(str(record.id)), str(user.id))

    def sign_out(self) -> Optional[asyncio.Task]:
        """
        Sign out locally and delete the session record in the background.

        The local session id is removed immediately. The returned task may be
        awaited; it never raises, deletion failures are only logged. Returns
        None when there was nothing to sign out.
        """
        session_id = self.get_session_id()
        if not session_id:
            return None

        self.unset_session_id()
        task = asyncio.create_task(self._delete_session_record(session_id))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        return task

    async def _delete_session_record(self, session_id: str) -> None:
        try:
            deleted = await self.store.delete_session_record(session_id)
        except Exception as e:
            logger.error("Failure deleting user session %s: %s", _short(session_id), str(e))
            return
        if deleted:
            logger.info("Session %s revoked during sign-out", _short(session_id))


class AuthSessionStorage(CookieStorage):
    """The authentication cookie namespace."""

    def __init__(self, config: SessionConfig, store: AuthStore):
        super().__init__(
            SESSION_COOKIE_NAME,
            CookieCodec(config.secrets, salt="session"),
            max_age=int(config.session_max_age.total_seconds()),
            secure=config.secure_cookies,
        )
        self.store = store

    def open(self, cookie_header: Optional[str]) -> AuthSession:
        return AuthSession(self, self.read(cookie_header), self.store)


class SessionService:
    """Entry point of the session subsystem."""

    def __init__(
        self,
        config: SessionConfig,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        self.config = config
        self.store = AuthStore(
            session_factory,
            session_max_age=config.session_max_age,
            renewal_window=config.renewal_window,
        )
        self.storage = AuthSessionStorage(config, self.store)
        self.client_storage = ClientSessionStorage(config.secrets, secure=config.secure_cookies)
        self.magic_links = MagicLinkService(config.secrets, config.magic_link_max_age)

    def get_session(self, request: Request) -> AuthSession:
        return self.storage.open(request.headers.get("cookie"))

    def get_client_session(self, request: Request) -> ClientSession:
        return self.client_storage.open(request.headers.get("cookie"))

    async def get_user(self, request: Request) -> Optional[User]:
        """
        Get the signed-in user for a request, or None.

        No store call is made when the cookie has no session id. Lookup
        failures are logged and treated as "not logged in".
        """
        session_id = self.get_session(request).get_session_id()
        if not session_id:
            return None

        try:
            return await self.store.find_user_by_session_id(session_id)
        except Exception as e:
            logger.error("Failure getting user from session ID %s: %s", _short(session_id), str(e))
            return None

    async def get_user_session_from_magic_link(self, request: Request) -> Optional[AuthSession]:
        """
        Sign in from a magic link request.

        Raises MagicLinkError when the link is invalid or expired. Returns
        None when no account exists for the link's email; no user is created.
        Otherwise returns the signed-in session, still to be committed.
        """
        email = self.magic_links.validate(str(request.url))

        user = await self.store.find_user_by_email(email)
        if not user:
            logger.info("Magic link redeemed for %s but no account exists", email)
            return None

        session = self.get_session(request)
        await session.sign_in(user)
        return session

    async def send_token(self, email: str, domain_url: str) -> None:
        """Email a magic link, worded by whether an account already exists."""
        magic_link_url = self.magic_links.create_link(email, domain_url)

        try:
            user = await self.store.find_user_by_email(email)
        except Exception as e:
            logger.warning("Could not look up %s before sending magic link: %s", email, str(e))
            user = None

        await send_magic_link_email(
            email=email,
            magic_link_url=magic_link_url,
            user_exists=user is not None,
            expires_in_minutes=self.magic_links.expires_in_minutes,
        )

    def _redirect_to_login(self, request: Request) -> Response:
        session = self.get_session(request)
        session.sign_out()
        return RedirectResponse(LOGIN_PATH, status_code=302, headers=session.get_headers())

    async def require_user(self, request: Request, continuation: Continuation) -> Response:
        """Run ``continuation`` with the signed-in user, or redirect to login."""
        user = await self.get_user(request)
        if not user:
            return self._redirect_to_login(request)
        return await _resolve(continuation(user))

    async def require_admin_user(self, request: Request, continuation: Continuation) -> Response:
        """
        Like require_user, but non-admin users are sent to the home page.

        That redirect leaves the session alone: the user stays logged in.
        """
        user = await self.get_user(request)
        if not user:
            return self._redirect_to_login(request)
        if not user.is_admin:
            return RedirectResponse(HOME_PATH, status_code=302)
        return await _resolve(continuation(user))


async def _resolve(result: Union[Response, Awaitable[Response]]) -> Response:
    if inspect.isawaitable(result):
        return await result
    return result
