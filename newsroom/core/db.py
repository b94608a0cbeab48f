from __future__ import annotations

import json
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from newsroom.core.config import Settings

def _sqlite_url(path: str) -> str:
    # Ensure absolute path works inside container volume, sqlite is file-based
    return f"sqlite+aiosqlite:///{path}"

def _json_dumps(value) -> str:
    # Keep Polish diacritics readable in the stored documents
    return json.dumps(value, ensure_ascii=False)

def make_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        _sqlite_url(settings.db_path),
        echo=False,
        json_serializer=_json_dumps,
    )

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

class Base(DeclarativeBase):
    pass

async def init_models(engine: AsyncEngine) -> None:
    # Create tables (simple, no migration tool needed)
    import newsroom.models  # noqa: F401  registers the mappers on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.sessionmaker() as session:
        yield session
