import datetime as dt

import pytest
from sqlalchemy import select

from conftest import EDITOR
from newsroom.core.scheduler import parse_hhmm, run_session_purge
from newsroom.core.security import hash_password, verify_password
from newsroom.models import User, UserSession


def test_password_hashing():
    encoded = hash_password("s3cret", iterations=1000)
    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("wrong", encoded)
    assert not verify_password("s3cret", "garbage")
    assert hash_password("s3cret") != hash_password("s3cret")


@pytest.mark.asyncio
async def test_login_session_logout(client, settings):
    assert (await client.get("/api/auth/session")).json() == {"user": None}

    resp = await client.post("/api/auth/login", json={"username": EDITOR[0], "password": EDITOR[1]})
    assert resp.status_code == 200
    assert resp.json() == {"user": {"username": "editor", "role": "editor"}}
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{settings.session_cookie_name}=")
    assert "HttpOnly" in cookie

    assert (await client.get("/api/auth/session")).json()["user"]["role"] == "editor"

    resp = await client.post("/api/auth/logout")
    assert resp.json() == {"ok": True}
    assert (await client.get("/api/auth/session")).json() == {"user": None}


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client):
    resp = await client.post("/api/auth/login", json={"username": "editor", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}

    resp = await client.post("/api/auth/login", json={"username": "ghost", "password": "nope"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_expired_sessions_are_ignored_and_purged(app, client, settings):
    async with app.state.sessionmaker() as session:
        user = (await session.execute(select(User).where(User.username == "admin"))).scalars().first()
        session.add(
            UserSession(
                token="stale-token",
                user_id=user.id,
                expires_at=dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=1),
            )
        )
        await session.commit()

    resp = await client.get("/api/admin/articles", headers={"Cookie": f"{settings.session_cookie_name}=stale-token"})
    assert resp.status_code == 401

    assert await run_session_purge(app.state.sessionmaker) == 1
    async with app.state.sessionmaker() as session:
        assert (await session.get(UserSession, "stale-token")) is None


def test_parse_hhmm():
    assert parse_hhmm("03:00") == (3, 0)
    assert parse_hhmm(" 23:59 ") == (23, 59)
    for bad in ("3", "24:00", "12:60"):
        with pytest.raises(ValueError):
            parse_hhmm(bad)
