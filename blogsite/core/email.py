"""
Email Service for the blog backend

Handles sending magic sign-in links using Resend.
Supports both development (logged link) and production (Resend API) modes.
"""

import logging

import resend

from blogsite.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def _render_magic_link_email(magic_link_url: str, user_exists: bool, expires_in_minutes: int) -> str:
    if user_exists:
        heading = "Sign in to your account"
        intro = "Here's your sign-in link. Click the button below to log in:"
        button = "Sign In"
    else:
        heading = "Create your account"
        intro = (
            "There's no account for this email address yet. "
            "Click the button below to finish creating one:"
        )
        button = "Create Account"

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{heading}</title>
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #333;">{heading}</h2>
        <p>Hi there,</p>
        <p>{intro}</p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{magic_link_url}"
               style="background-color: #1f2028; color: white; padding: 15px 30px; text-decoration: none; border-radius: 5px; display: inline-block; font-weight: bold;">
                {button}
            </a>
        </div>

        <p><strong>This link expires in {expires_in_minutes} minutes.</strong></p>
        <p>If you didn't request this link, you can safely ignore this email.</p>
    </body>
    </html>
    """


async def send_magic_link_email(
    email: str,
    magic_link_url: str,
    user_exists: bool,
    expires_in_minutes: int = 30,
) -> None:
    """Send magic link email for passwordless authentication."""

    # Development mode - just log the link
    if not settings.resend_api_key.get_secret_value():
        logger.info(
            "[DEV] Magic link for %s (account exists: %s, expires in %s minutes): %s",
            email,
            user_exists,
            expires_in_minutes,
            magic_link_url,
        )
        return

    resend.api_key = settings.resend_api_key.get_secret_value()

    params = {
        "from": settings.from_email,
        "to": [email],
        "subject": "Your sign-in link" if user_exists else "Finish creating your account",
        "html": _render_magic_link_email(magic_link_url, user_exists, expires_in_minutes),
    }

    try:
        resend.Emails.send(params)
        logger.info("Magic link email sent to %s", email)
    except Exception as e:
        logger.error("Failed to send magic link email to %s: %s", email, str(e))
        raise
