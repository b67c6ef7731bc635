"""
Authentication System

Cookie sessions backed by server-side session records, magic link sign-in,
the anonymous client-identity cookie, and the route guards built on them.
"""

from blogsite.auth.client import ClientSession, ClientSessionStorage
from blogsite.auth.cookies import (
    CookieCodec,
    CookieSession,
    CookieStorage,
    headers_from_mapping,
    headers_from_pairs,
)
from blogsite.auth.magic_link import (
    ExpiredMagicLinkError,
    InvalidMagicLinkError,
    MagicLinkError,
    MagicLinkService,
)
from blogsite.auth.session import AuthSession, AuthSessionStorage, SessionService
from blogsite.auth.store import (
    AuthStore,
    SessionExpiredError,
    SessionNotFoundError,
    StoreError,
)

__all__ = [
    "AuthSession",
    "AuthSessionStorage",
    "AuthStore",
    "ClientSession",
    "ClientSessionStorage",
    "CookieCodec",
    "CookieSession",
    "CookieStorage",
    "ExpiredMagicLinkError",
    "InvalidMagicLinkError",
    "MagicLinkError",
    "MagicLinkService",
    "SessionExpiredError",
    "SessionNotFoundError",
    "SessionService",
    "StoreError",
    "headers_from_mapping",
    "headers_from_pairs",
]
