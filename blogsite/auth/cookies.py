"""
Signed Cookie Sessions

This module provides the cookie layer shared by the authentication session
and the client-identity cookie:

- CookieCodec: signs and verifies cookie payloads with rotating secrets
- CookieStorage: one cookie namespace (name, secrets, path, lifetime)
- CookieSession: a request-scoped, mutable view of one decoded cookie

A session only produces a Set-Cookie header when its signed value differs
from the value it had when the request came in, so unchanged sessions never
churn cookies.
"""

import http.cookies
import logging
from datetime import datetime
from email.utils import format_datetime
from typing import Any, Dict, Iterable, Literal, Mapping, Optional, Sequence, Tuple

from itsdangerous import BadData, URLSafeSerializer
from starlette.datastructures import MutableHeaders
from starlette.requests import cookie_parser

logger = logging.getLogger(__name__)


class CookieCodec:
    """
    Sign and verify cookie payloads.

    ``secrets`` is ordered newest first: the first secret signs, every secret
    is tried when verifying, so a secret can be rotated in without logging
    everyone out.
    """

    def __init__(self, secrets: Sequence[str], salt: str):
        if not secrets:
            raise ValueError("At least one cookie secret is required")
        # itsdangerous signs with the last key in the list
        self._serializer = URLSafeSerializer(list(reversed(secrets)), salt=salt)

    def sign(self, data: Mapping[str, Any]) -> str:
        return self._serializer.dumps(dict(data))

    def unsign(self, value: str) -> Dict[str, Any]:
        """Return the decoded payload, raising ``BadData`` on a bad signature."""
        data = self._serializer.loads(value)
        if not isinstance(data, dict):
            raise BadData("Cookie payload is not an object")
        return data


def headers_from_mapping(mapping: Mapping[str, str]) -> MutableHeaders:
    """Adapt a plain ``{name: value}`` mapping to a header collection."""
    return MutableHeaders(headers=dict(mapping))


def headers_from_pairs(pairs: Iterable[Tuple[str, str]]) -> MutableHeaders:
    """Adapt an ordered list of ``(name, value)`` pairs, keeping duplicates."""
    return MutableHeaders(
        raw=[(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in pairs]
    )


class CookieStorage:
    """A single signed-cookie namespace."""

    def __init__(
        self,
        name: str,
        codec: CookieCodec,
        *,
        max_age: Optional[int] = None,
        expires: Optional[datetime] = None,
        path: str = "/",
        samesite: Literal["lax", "strict", "none"] = "lax",
        httponly: bool = True,
        secure: bool = False,
    ):
        self.name = name
        self.codec = codec
        self.max_age = max_age
        self.expires = expires
        self.path = path
        self.samesite = samesite
        self.httponly = httponly
        self.secure = secure

    def read(self, cookie_header: Optional[str]) -> Dict[str, Any]:
        """
        Decode this namespace's cookie from a raw ``Cookie`` header.

        Missing cookies, bad signatures and malformed payloads all yield an
        empty dict: an invalid cookie is the same as no session.
        """
        if not cookie_header:
            return {}

        raw = cookie_parser(cookie_header).get(self.name)
        if not raw:
            return {}

        try:
            return self.codec.unsign(raw)
        except BadData:
            logger.debug("Ignoring %s cookie with an invalid signature", self.name)
            return {}

    def open(self, cookie_header: Optional[str]) -> "CookieSession":
        return CookieSession(self, self.read(cookie_header))

    def serialize(self, value: str) -> str:
        """Build the ``Set-Cookie`` header value for an already signed value."""
        cookie: http.cookies.BaseCookie = http.cookies.SimpleCookie()
        cookie[self.name] = value
        if self.max_age is not None:
            cookie[self.name]["max-age"] = self.max_age
        if self.expires is not None:
            cookie[self.name]["expires"] = format_datetime(self.expires, usegmt=True)
        cookie[self.name]["path"] = self.path
        if self.secure:
            cookie[self.name]["secure"] = True
        if self.httponly:
            cookie[self.name]["httponly"] = True
        cookie[self.name]["samesite"] = self.samesite
        return cookie.output(header="").strip()


class CookieSession:
    """Request-scoped key/value view of one signed cookie."""

    def __init__(self, storage: CookieStorage, data: Dict[str, Any]):
        self.storage = storage
        self._data = data
        self._initial_value = storage.codec.sign(data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def unset(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def data(self) -> Dict[str, Any]:
        return dict(self._data)

    def commit(self) -> Optional[str]:
        """
        Serialize the session.

        Returns the ``Set-Cookie`` value, or ``None`` when the signed value is
        identical to the one the request arrived with.
        """
        value = self.storage.codec.sign(self._data)
        if value == self._initial_value:
            return None
        return self.storage.serialize(value)

    def get_headers(self, headers: Optional[MutableHeaders] = None) -> MutableHeaders:
        """
        Append this session's ``Set-Cookie`` to ``headers``.

        A new header collection is created when none is given. When nothing
        changed the collection is returned untouched.
        """
        if headers is None:
            headers = MutableHeaders()
        value = self.commit()
        if value is None:
            return headers
        headers.append("set-cookie", value)
        return headers
