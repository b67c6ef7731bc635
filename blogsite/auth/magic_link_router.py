"""
Magic Link Authentication Endpoints

This module provides the API endpoints for magic link authentication:
- POST /magic-link/request - Request a magic link via email
- GET /magic - Redeem a magic link token and sign in
- POST /auth/logout - Sign out and revoke the session record
- GET /auth/session - Current user for the session cookie

Session cookies are only written when the session actually changed.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from blogsite.auth.dependencies import current_user, get_session_service
from blogsite.auth.session import SessionService
from blogsite.core.config import get_settings
from blogsite.models.user import User, UserRead

router = APIRouter()
logger = logging.getLogger(__name__)
settings = get_settings()


class MagicLinkRequest(SQLModel):
    """Request schema for sending a magic link."""
    email: str


class MagicLinkResponse(SQLModel):
    """Response schema for magic link creation."""
    message: str
    expires_in_minutes: int


@router.post("/magic-link/request", response_model=MagicLinkResponse)
async def request_magic_link(
    magic_link_request: MagicLinkRequest,
    sessions: SessionService = Depends(get_session_service),
) -> MagicLinkResponse:
    """
    Request a magic link for passwordless authentication.

    The email differs depending on whether an account already exists for
    the address; the response does not, so accounts cannot be probed.
    """
    email = magic_link_request.email.strip()
    if "@" not in email:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "invalid_email",
                "message": "Please provide a valid email address",
                "action": "Check the email address and try again"
            }
        )

    try:
        await sessions.send_token(email, settings.site_url)
    except Exception as e:
        logger.error("Error sending magic link to %s: %s", email, str(e))
        raise HTTPException(
            status_code=500,
            detail="Failed to send magic link. Please try again."
        )

    return MagicLinkResponse(
        message="Magic link sent to your email address",
        expires_in_minutes=sessions.magic_links.expires_in_minutes,
    )


@router.get("/magic")
async def redeem_magic_link(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    """
    Redeem a magic link token and sign in.

    Invalid or expired links fail with 400, links for an address without
    an account fail with 404. On success the new session cookie is set.
    """
    session = await sessions.get_user_session_from_magic_link(request)

    if session is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "no_account",
                "message": "There is no account for this email address",
                "action": "Sign up first, then request a new magic link"
            }
        )

    user = await session.get_user()
    if user is None:
        raise HTTPException(
            status_code=500,
            detail="Failed to sign in. Please try again."
        )

    logger.info("Magic link redeemed successfully for user %s", str(user.id))

    return JSONResponse(
        {
            "message": "Authentication successful",
            "user": UserRead.from_user(user).model_dump(mode="json"),
        },
        headers=session.get_headers(),
    )


@router.post("/auth/logout")
async def logout(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    """
    Log out the current user.

    Clears the session id from the cookie and waits for the session record
    to be deleted; a failed deletion is logged and does not fail the logout.
    """
    session = sessions.get_session(request)
    cleanup = session.sign_out()
    if cleanup is not None:
        await cleanup

    return JSONResponse(
        {"message": "Logged out successfully"},
        headers=session.get_headers(),
    )


@router.get("/auth/session", response_model=UserRead)
async def get_current_session(user: User = Depends(current_user)) -> UserRead:
    """Return the user the session cookie belongs to, 401 if none."""
    return UserRead.from_user(user)
