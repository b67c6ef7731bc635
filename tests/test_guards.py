import uuid

import pytest
from starlette.responses import PlainTextResponse

from blogsite.auth.session import SESSION_COOKIE_NAME, SESSION_ID_KEY
from blogsite.models.user import UserRole
from tests.conftest import cookie_pair, make_request


def _must_not_run(user):
    raise AssertionError("continuation should not run")


def _greet(user):
    return PlainTextResponse(f"hello {user.email}")


async def _greet_async(user):
    return PlainTextResponse(f"hello {user.email}")


@pytest.mark.asyncio
async def test_require_user_redirects_and_clears_stale_session(sessions):
    handle = sessions.get_session(make_request())
    handle.set(SESSION_ID_KEY, str(uuid.uuid4()))
    stale_cookie = cookie_pair(handle.commit())

    response = await sessions.require_user(make_request(cookie=stale_cookie), _must_not_run)

    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    cleared = sessions.get_session(make_request(cookie=cookie_pair(set_cookie)))
    assert cleared.get_session_id() is None


@pytest.mark.asyncio
async def test_require_user_without_cookie_redirects_without_set_cookie(sessions):
    response = await sessions.require_user(make_request(), _must_not_run)

    assert response.status_code == 302
    assert response.headers["location"] == "/login"
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_require_user_runs_continuation(sessions, create_user, signed_in_cookie):
    cookie = await signed_in_cookie(await create_user())

    response = await sessions.require_user(make_request(cookie=cookie), _greet)

    assert response.status_code == 200
    assert response.body == b"hello reader@example.com"


@pytest.mark.asyncio
async def test_require_user_awaits_async_continuation(sessions, create_user, signed_in_cookie):
    cookie = await signed_in_cookie(await create_user())

    response = await sessions.require_user(make_request(cookie=cookie), _greet_async)

    assert response.body == b"hello reader@example.com"


@pytest.mark.asyncio
async def test_require_admin_user_sends_non_admin_home_without_headers(sessions, create_user, signed_in_cookie):
    cookie = await signed_in_cookie(await create_user(role=UserRole.USER))

    response = await sessions.require_admin_user(make_request(cookie=cookie), _must_not_run)

    assert response.status_code == 302
    assert response.headers["location"] == "/"
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_require_admin_user_runs_continuation_for_admin(sessions, create_user, signed_in_cookie):
    cookie = await signed_in_cookie(await create_user(email="admin@example.com", role=UserRole.ADMIN))

    response = await sessions.require_admin_user(make_request(cookie=cookie), _greet_async)

    assert response.status_code == 200
    assert response.body == b"hello admin@example.com"


@pytest.mark.asyncio
async def test_require_admin_user_without_user_redirects_to_login(sessions):
    response = await sessions.require_admin_user(make_request(), _must_not_run)

    assert response.status_code == 302
    assert response.headers["location"] == "/login"
