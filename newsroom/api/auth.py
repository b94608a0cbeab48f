from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.db import get_db
from newsroom.core.security import AuthContext, authenticate, close_session, get_auth_context, open_session

router = APIRouter(prefix="/api/auth", tags=["auth"])

class LoginPayload(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

@router.post("/login")
async def login(payload: LoginPayload, request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    settings = request.app.state.settings
    user = await authenticate(db, payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    row = await open_session(db, user, settings.session_ttl_hours)
    response.set_cookie(
        settings.session_cookie_name,
        row.token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return {"user": {"username": user.username, "role": user.role}}

@router.post("/logout")
async def logout(request: Request, response: Response, db: AsyncSession = Depends(get_db)):
    settings = request.app.state.settings
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        await close_session(db, token)
    response.delete_cookie(settings.session_cookie_name)
    return {"ok": True}

@router.get("/session")
async def current_session(auth: AuthContext = Depends(get_auth_context)):
    if not auth.authenticated:
        return {"user": None}
    return {"user": {"username": auth.username, "role": auth.role}}
