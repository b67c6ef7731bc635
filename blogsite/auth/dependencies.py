"""
Authentication Dependencies for Session-Based Auth

This module provides FastAPI dependencies on top of the session service:

- get_session_service: the SessionService built at startup
- current_user: Get current authenticated user (401 otherwise)
- optional_user: Get user if authenticated, None otherwise

Page routes that should redirect instead of failing use
SessionService.require_user / require_admin_user directly.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request

from blogsite.auth.session import SessionService
from blogsite.models.user import User


def get_session_service(request: Request) -> SessionService:
    """Return the session service attached to the application state."""
    return request.app.state.sessions


async def current_user(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> User:
    """
    Get the current authenticated user from session.

    Raises 401 if no valid session is found.
    """
    user = await sessions.get_user(request)

    if not user:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "authentication_required",
                "message": "Authentication is required to access this resource",
                "action": "Please log in"
            }
        )

    return user


async def optional_user(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
) -> Optional[User]:
    """
    Get the current user if authenticated, None otherwise.

    This dependency never raises authentication errors - it returns None
    for unauthenticated requests. Useful for endpoints that work with
    or without authentication.
    """
    return await sessions.get_user(request)
