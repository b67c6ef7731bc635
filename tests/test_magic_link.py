from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

import blogsite.auth.session as auth_session
from blogsite.auth.magic_link import (
    ExpiredMagicLinkError,
    InvalidMagicLinkError,
    MagicLinkService,
)
from blogsite.models.session import Session
from blogsite.models.user import User
from tests.conftest import OLD_SECRET, SECRET, make_request


def _request_for(link: str):
    path, _, query = link.partition("?")
    return make_request(path="/magic", query_string=query)


def test_link_round_trips_email():
    service = MagicLinkService([SECRET], timedelta(minutes=30))

    link = service.create_link("reader@example.com", "https://blog.example.com/")

    assert link.startswith("https://blog.example.com/magic?token=")
    assert service.validate(link) == "reader@example.com"


def test_link_without_token_is_invalid():
    service = MagicLinkService([SECRET], timedelta(minutes=30))

    with pytest.raises(InvalidMagicLinkError) as exc_info:
        service.validate("https://blog.example.com/magic")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["error"] == "invalid_magic_link"


def test_link_from_another_secret_is_invalid():
    issued = MagicLinkService([OLD_SECRET], timedelta(minutes=30)).create_link(
        "reader@example.com", "https://blog.example.com"
    )

    with pytest.raises(InvalidMagicLinkError):
        MagicLinkService([SECRET], timedelta(minutes=30)).validate(issued)


def test_link_from_retired_secret_still_validates_during_rotation():
    issued = MagicLinkService([OLD_SECRET], timedelta(minutes=30)).create_link(
        "reader@example.com", "https://blog.example.com"
    )

    assert MagicLinkService([SECRET, OLD_SECRET], timedelta(minutes=30)).validate(issued) == "reader@example.com"


def test_expired_link_has_its_own_error():
    service = MagicLinkService([SECRET], timedelta(seconds=-1))
    link = service.create_link("reader@example.com", "https://blog.example.com")

    with pytest.raises(ExpiredMagicLinkError) as exc_info:
        service.validate(link)

    assert exc_info.value.detail["error"] == "expired_magic_link"


@pytest.mark.asyncio
async def test_magic_link_for_unknown_email_returns_none_without_creating_user(sessions, session_factory):
    link = sessions.magic_links.create_link("stranger@example.com", "http://testserver")

    result = await sessions.get_user_session_from_magic_link(_request_for(link))

    assert result is None
    async with session_factory() as db:
        assert (await db.execute(select(func.count(User.id)))).scalar_one() == 0
        assert (await db.execute(select(func.count(Session.id)))).scalar_one() == 0


@pytest.mark.asyncio
async def test_magic_link_signs_existing_user_in(sessions, create_user):
    user = await create_user(email="reader@example.com")
    link = sessions.magic_links.create_link("Reader@Example.com", "http://testserver")

    handle = await sessions.get_user_session_from_magic_link(_request_for(link))

    assert handle is not None
    assert handle.get_session_id() is not None
    assert handle.commit() is not None
    assert (await handle.get_user()).id == user.id


@pytest.mark.asyncio
async def test_invalid_magic_link_error_propagates(sessions):
    with pytest.raises(InvalidMagicLinkError):
        await sessions.get_user_session_from_magic_link(make_request(path="/magic", query_string="token=nope"))


@pytest.mark.asyncio
async def test_send_token_reports_whether_account_exists(sessions, create_user, monkeypatch):
    send = AsyncMock()
    monkeypatch.setattr(auth_session, "send_magic_link_email", send)
    await create_user(email="reader@example.com")

    await sessions.send_token("reader@example.com", "https://blog.example.com")
    await sessions.send_token("stranger@example.com", "https://blog.example.com")

    first, second = send.await_args_list
    assert first.kwargs["user_exists"] is True
    assert second.kwargs["user_exists"] is False
    assert first.kwargs["magic_link_url"].startswith("https://blog.example.com/magic?token=")
    assert first.kwargs["expires_in_minutes"] == 30
    assert sessions.magic_links.validate(second.kwargs["magic_link_url"]) == "stranger@example.com"


@pytest.mark.asyncio
async def test_send_token_ignores_lookup_failure(sessions, monkeypatch):
    send = AsyncMock()
    monkeypatch.setattr(auth_session, "send_magic_link_email", send)
    monkeypatch.setattr(
        sessions.store,
        "find_user_by_email",
        AsyncMock(side_effect=RuntimeError("database unreachable")),
    )

    await sessions.send_token("reader@example.com", "https://blog.example.com")

    assert send.await_args.kwargs["user_exists"] is False
