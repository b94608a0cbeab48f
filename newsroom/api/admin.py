from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.db import get_db
from newsroom.core.security import require_admin
from newsroom.services.articles import (
    ArticleUpdate,
    delete_article,
    editable_view,
    get_article,
    list_articles,
    update_article,
)
from newsroom.services.categories import (
    CategoryInput,
    category_view,
    create_category,
    delete_category,
    list_categories,
    update_category,
)
from newsroom.services.slugs import slug_taken

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.get("/articles")
async def admin_list_articles(
    page_no: int = Query(default=1, ge=1, alias="pageNo"),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await list_articles(db, page_no=page_no, limit=limit, search=search, published_only=False)
    return {
        "articles": [editable_view(a) for a in rows],
        "total": total,
        "pageNo": page_no,
        "limit": limit,
    }

# Outside /articles/{slug} so no article slug can shadow it
@router.get("/articles-slug-check")
async def admin_slug_exists(
    slug: str = Query(min_length=1),
    db: AsyncSession = Depends(get_db),
):
    return {"exists": await slug_taken(db, slug)}

@router.get("/articles/{slug}")
async def admin_get_article(slug: str, db: AsyncSession = Depends(get_db)):
    a = await get_article(db, slug)
    if not a:
        raise HTTPException(status_code=404, detail="Article not found")
    return editable_view(a)

@router.get("/articles/{slug}/edit")
async def admin_get_editable(slug: str, db: AsyncSession = Depends(get_db)):
    return await admin_get_article(slug, db)

@router.put("/articles/{slug}/edit")
async def admin_update_article(slug: str, payload: ArticleUpdate, db: AsyncSession = Depends(get_db)):
    result = await update_article(db, slug, payload)
    return {
        "message": "Article updated successfully",
        "article": editable_view(result.article),
        "slugChanged": result.slug_changed,
        "newSlug": result.new_slug,
    }

@router.delete("/articles/{slug}")
async def admin_delete_article(slug: str, db: AsyncSession = Depends(get_db)):
    await delete_article(db, slug)
    return {"ok": True}

@router.get("/categories")
async def admin_list_categories(db: AsyncSession = Depends(get_db)):
    return [category_view(c) for c in await list_categories(db)]

@router.post("/categories", status_code=201)
async def admin_create_category(payload: CategoryInput, db: AsyncSession = Depends(get_db)):
    return category_view(await create_category(db, payload))

@router.put("/categories/{category_id}")
async def admin_update_category(category_id: str, payload: CategoryInput, db: AsyncSession = Depends(get_db)):
    return category_view(await update_category(db, category_id, payload))

@router.delete("/categories/{category_id}", status_code=204)
async def admin_delete_category(category_id: str, db: AsyncSession = Depends(get_db)):
    await delete_category(db, category_id)
