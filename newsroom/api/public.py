from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.db import get_db
from newsroom.core.security import AuthContext, require_editor
from newsroom.services.articles import (
    ArticleCreate,
    create_article,
    editable_view,
    get_article,
    list_articles,
    public_detail_view,
    public_view,
    video_view,
)
from newsroom.services.categories import category_view, list_categories
from newsroom.services.locale import resolve_locale

router = APIRouter(prefix="/api", tags=["public"])

def split_categories(values: list[str]) -> list[str]:
    # ?cat=a&cat=b and ?cat=a,b are equivalent
    return [s.strip() for v in values for s in v.split(",") if s.strip()]

def _page(items: list[dict], total: int, page_no: int, limit: int) -> dict:
    return {
        "articles": items,
        "total": total,
        "pageNo": page_no,
        "limit": limit,
        "pages": math.ceil(total / limit),
    }

@router.get("/articles")
async def list_published_articles(
    request: Request,
    response: Response,
    page_no: int = Query(default=1, ge=1, alias="pageNo"),
    limit: int = Query(default=9, ge=1, le=50),
    cat: list[str] = Query(default=[]),
    search: Optional[str] = Query(default=None),
    locale: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    settings = request.app.state.settings
    loc = resolve_locale(locale, settings.default_locale)
    rows, total = await list_articles(
        db, page_no=page_no, limit=limit, categories=split_categories(cat), search=search
    )
    response.headers["Cache-Control"] = settings.public_cache_control
    return _page([public_view(a, loc) for a in rows], total, page_no, limit)

@router.get("/articles/{slug}")
async def get_published_article(
    slug: str,
    request: Request,
    locale: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    a = await get_article(db, slug)
    if not a or a.status not in ("published", None):
        raise HTTPException(status_code=404, detail="Article not found")
    return public_detail_view(a, resolve_locale(locale, request.app.state.settings.default_locale))

@router.post("/articles", status_code=201)
async def create_published_article(
    payload: ArticleCreate,
    _auth: AuthContext = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    a = await create_article(db, payload)
    return {"slug": a.slug, "article": editable_view(a)}

@router.get("/videos")
async def list_videos(
    request: Request,
    response: Response,
    page_no: int = Query(default=1, ge=1, alias="pageNo"),
    limit: int = Query(default=9, ge=1, le=50),
    cat: list[str] = Query(default=[]),
    locale: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    settings = request.app.state.settings
    loc = resolve_locale(locale, settings.default_locale)
    rows, total = await list_articles(
        db, page_no=page_no, limit=limit, categories=split_categories(cat), video_only=True
    )
    response.headers["Cache-Control"] = settings.public_cache_control
    # Same "articles" key as the article listing so clients share one parser
    return _page([video_view(a, loc) for a in rows], total, page_no, limit)

@router.get("/categories")
async def list_public_categories(
    request: Request,
    locale: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    loc = resolve_locale(locale, request.app.state.settings.default_locale) if locale else None
    return [category_view(c, loc) for c in await list_categories(db)]
