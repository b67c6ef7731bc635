"""
Magic Link Tokens

This module builds and validates the signed, time-limited sign-in links
sent by email. A token carries only the email address and is verified
statelessly: the signature proves the link was issued here and the embedded
timestamp bounds its lifetime.

Validation failures raise MagicLinkError subclasses. They are the only
errors the session subsystem lets reach its callers, because an invalid or
expired link has to be explained to the user.
"""

from datetime import timedelta
from typing import Sequence
from urllib.parse import parse_qs, urlencode, urlsplit

from fastapi import HTTPException
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

MAGIC_LINK_PATH = "/magic"
MAGIC_LINK_PARAM = "token"


class MagicLinkService:
    """Issue and validate magic link tokens."""

    def __init__(self, secrets: Sequence[str], max_age: timedelta):
        self._serializer = URLSafeTimedSerializer(list(reversed(secrets)), salt="magic-link")
        self.max_age = max_age

    @property
    def expires_in_minutes(self) -> int:
        return int(self.max_age.total_seconds() // 60)

    def generate_token(self, email: str) -> str:
        return self._serializer.dumps({"emailAddress": email})

    def create_link(self, email: str, domain_url: str) -> str:
        """Build the complete magic link URL for email delivery."""
        query = urlencode({MAGIC_LINK_PARAM: self.generate_token(email)})
        return f"{domain_url.rstrip('/')}{MAGIC_LINK_PATH}?{query}"

    def validate(self, url: str) -> str:
        """
        Validate the token in ``url`` and return its email address.

        Raises ExpiredMagicLinkError for expired tokens and
        InvalidMagicLinkError for anything else that is wrong with the link.
        """
        values = parse_qs(urlsplit(url).query).get(MAGIC_LINK_PARAM)
        if not values or not values[0]:
            raise InvalidMagicLinkError()

        try:
            payload = self._serializer.loads(
                values[0], max_age=int(self.max_age.total_seconds())
            )
        except SignatureExpired:
            raise ExpiredMagicLinkError() from None
        except BadData:
            raise InvalidMagicLinkError() from None

        email = payload.get("emailAddress") if isinstance(payload, dict) else None
        if not isinstance(email, str) or not email:
            raise InvalidMagicLinkError()
        return email


# Exception classes for better error handling
class MagicLinkError(HTTPException):
    """Base exception for magic link errors."""
    pass


class InvalidMagicLinkError(MagicLinkError):
    """Raised when a magic link token is missing, tampered with or malformed."""

    def __init__(self):
        super().__init__(
            status_code=400,
            detail={
                "error": "invalid_magic_link",
                "message": "Sign in link invalid. Please request a new one.",
                "action": "Request a new magic link"
            }
        )


class ExpiredMagicLinkError(MagicLinkError):
    """Raised when a magic link token is past its lifetime."""

    def __init__(self):
        super().__init__(
            status_code=400,
            detail={
                "error": "expired_magic_link",
                "message": "Magic link expired. Please request a new one.",
                "action": "Request a new magic link"
            }
        )
