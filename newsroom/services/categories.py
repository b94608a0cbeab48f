from __future__ import annotations

import datetime as dt
import logging

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.errors import Conflict, NotFound, PayloadInvalid
from newsroom.models import Category
from newsroom.services.locale import normalize_locale_text
from newsroom.services.slugs import make_slug

logger = logging.getLogger(__name__)

class CategoryNotFound(NotFound):
    def __init__(self):
        super().__init__("Category not found")

class CategoryInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name_en: str = Field(min_length=2, alias="nameEn")
    name_pl: str = Field(min_length=2, alias="namePl")

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

def _slug_for(payload: CategoryInput) -> str:
    slug = make_slug(payload.name_en)
    if not slug:
        raise PayloadInvalid(["nameEn: cannot derive a slug from the name"])
    return slug

async def _slug_owner(session: AsyncSession, slug: str) -> str | None:
    q = select(Category.id).where(Category.slug == slug).limit(1)
    return (await session.execute(q)).scalar_one_or_none()

async def list_categories(session: AsyncSession) -> list[Category]:
    rows = (await session.execute(select(Category))).scalars().all()
    # Sorted in Python: legacy rows keep a plain-string name
    return sorted(rows, key=lambda c: normalize_locale_text(c.name).en.lower())

async def create_category(session: AsyncSession, payload: CategoryInput) -> Category:
    slug = _slug_for(payload)
    if await _slug_owner(session, slug) is not None:
        raise Conflict("Slug exists")

    now = _utc_now()
    cat = Category(
        slug=slug,
        name={"en": payload.name_en, "pl": payload.name_pl},
        created_at=now,
        updated_at=now,
    )
    session.add(cat)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Slug exists")
    logger.info("created category %s", slug)
    return cat

async def update_category(session: AsyncSession, category_id: str, payload: CategoryInput) -> Category:
    cat = (await session.execute(select(Category).where(Category.id == category_id))).scalars().first()
    if cat is None:
        raise CategoryNotFound()

    slug = _slug_for(payload)
    owner = await _slug_owner(session, slug)
    if owner is not None and owner != category_id:
        raise Conflict("Slug exists")

    cat.slug = slug
    cat.name = {"en": payload.name_en, "pl": payload.name_pl}
    cat.updated_at = _utc_now()
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Slug exists")
    return cat

async def delete_category(session: AsyncSession, category_id: str) -> None:
    res = await session.execute(delete(Category).where(Category.id == category_id))
    await session.commit()
    if res.rowcount == 0:
        raise CategoryNotFound()

def category_view(c: Category, locale: str | None = None) -> dict:
    name = normalize_locale_text(c.name)
    return {
        "id": c.id,
        "slug": c.slug,
        "name": name.get(locale) if locale else name.to_dict(),
        "createdAt": c.created_at.isoformat() if c.created_at else None,
        "updatedAt": c.updated_at.isoformat() if c.updated_at else None,
    }
