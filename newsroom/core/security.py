from __future__ import annotations

import base64
import datetime as dt
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from newsroom.core.db import get_db
from newsroom.models import User, UserSession

logger = logging.getLogger(__name__)

ROLES = ("admin", "editor", "user")
PBKDF2_ITERATIONS = 120_000

@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

ANONYMOUS = AuthContext()

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

# --- passwords ---------------------------------------------------------------

def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${base64.b64encode(digest).decode('ascii')}"

def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), expected)

# --- users & sessions --------------------------------------------------------

async def create_user(session: AsyncSession, username: str, password: str, role: str = "user") -> User:
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    user = User(username=username, password_hash=hash_password(password), role=role)
    session.add(user)
    await session.commit()
    return user

async def ensure_user(session: AsyncSession, username: str, password: str, role: str) -> bool:
    """Create the user unless the username exists. Returns True when created."""
    existing = (await session.execute(select(User.id).where(User.username == username))).scalar_one_or_none()
    if existing is not None:
        return False
    await create_user(session, username, password, role)
    logger.info("seeded %s user %r", role, username)
    return True

async def authenticate(session: AsyncSession, username: str, password: str) -> Optional[User]:
    user = (await session.execute(select(User).where(User.username == username))).scalars().first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

async def open_session(session: AsyncSession, user: User, ttl_hours: int) -> UserSession:
    row = UserSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=_utc_now() + dt.timedelta(hours=ttl_hours),
    )
    session.add(row)
    await session.commit()
    return row

async def close_session(session: AsyncSession, token: str) -> None:
    await session.execute(delete(UserSession).where(UserSession.token == token))
    await session.commit()

async def purge_expired_sessions(session: AsyncSession) -> int:
    res = await session.execute(delete(UserSession).where(UserSession.expires_at <= _utc_now()))
    await session.commit()
    return res.rowcount or 0

async def resolve_session(session: AsyncSession, token: Optional[str]) -> AuthContext:
    if not token:
        return ANONYMOUS
    stmt = (
        select(UserSession)
        .options(joinedload(UserSession.user))
        .where(UserSession.token == token, UserSession.expires_at > _utc_now())
    )
    row = (await session.execute(stmt)).scalars().first()
    if not row or not row.user:
        return ANONYMOUS
    return AuthContext(user_id=row.user.id, username=row.user.username, role=row.user.role)

# --- dependencies ------------------------------------------------------------

async def get_auth_context(request: Request, db: AsyncSession = Depends(get_db)) -> AuthContext:
    token = request.cookies.get(request.app.state.settings.session_cookie_name)
    return await resolve_session(db, token)

def require_admin(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if auth.role != "admin":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return auth

def require_editor(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not auth.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    if auth.role not in ("admin", "editor"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return auth
