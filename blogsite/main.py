"""
Blog Backend - Main Application Entry Point

This module serves as the central configuration point for the site's API.
It assembles magic-link authentication, blog read tracking and health
monitoring endpoints into a FastAPI application.

Authentication uses signed cookie sessions pointing at server-side session
records; the SessionService is built once here from explicit configuration
and shared through the application state.
"""

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blogsite.auth.dependencies import get_session_service
from blogsite.auth.magic_link_router import router as magic_link_router
from blogsite.auth.session import SessionService
from blogsite.core.config import get_settings
from blogsite.db import AsyncSessionLocal
from blogsite.models.user import User, UserRead
from blogsite.reads import router as reads_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.value,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Blog Backend")
app.state.sessions = SessionService(settings.session_config(), AsyncSessionLocal)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["meta"])
def health_check():
    """Simple health check endpoint returning application status."""
    return {
        "status": "ok",
        "environment": settings.environment.value,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


app.include_router(magic_link_router, tags=["auth"])

app.include_router(reads_router, tags=["blog"])


@app.get("/me", tags=["auth"])
async def read_me(request: Request, sessions: SessionService = Depends(get_session_service)):
    """Return the signed-in user's profile, or redirect to the login page."""

    def render(user: User) -> JSONResponse:
        return JSONResponse(UserRead.from_user(user).model_dump(mode="json"))

    return await sessions.require_user(request, render)


@app.get("/admin", tags=["admin"])
async def admin_dashboard(request: Request, sessions: SessionService = Depends(get_session_service)):
    """Admin landing page; non-admins are sent home, anonymous users to login."""

    async def render(user: User) -> JSONResponse:
        return JSONResponse({
            "message": "Welcome to the admin dashboard",
            "user": UserRead.from_user(user).model_dump(mode="json"),
        })

    return await sessions.require_admin_user(request, render)
