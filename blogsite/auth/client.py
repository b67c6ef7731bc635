"""
Client Identity Cookie

Tracks individual browsers so reads can be attributed and counted even when
nobody is logged in. The identity lives in its own signed cookie, unrelated
to the auth session, and is never cleared by signing out.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from blogsite.auth.cookies import CookieCodec, CookieSession, CookieStorage

CLIENT_COOKIE_NAME = "blogsite_client_id"
CLIENT_ID_KEY = "clientId"
CLIENT_COOKIE_EXPIRES = datetime(2088, 10, 18, tzinfo=timezone.utc)


class ClientSession(CookieSession):
    """Cookie session that always carries a client id."""

    def get_client_id(self) -> str:
        client_id = self.get(CLIENT_ID_KEY)
        if isinstance(client_id, str):
            return client_id
        client_id = str(uuid.uuid4())
        self.set(CLIENT_ID_KEY, client_id)
        return client_id


class ClientSessionStorage(CookieStorage):
    """The long-lived client-identity cookie namespace."""

    def __init__(self, secrets: Sequence[str], *, secure: bool = False):
        super().__init__(
            CLIENT_COOKIE_NAME,
            CookieCodec(secrets, salt="client-id"),
            expires=CLIENT_COOKIE_EXPIRES,
            secure=secure,
        )

    def open(self, cookie_header: Optional[str]) -> ClientSession:
        session = ClientSession(self, self.read(cookie_header))
        session.get_client_id()
        return session
