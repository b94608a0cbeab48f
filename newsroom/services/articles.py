from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator
from sqlalchemy import String, cast, delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.errors import Conflict, NotFound, PayloadInvalid
from newsroom.models import Article
from newsroom.services.locale import LOCALES, LocaleRecord, LocalizedField, RequiredLocalizedField, normalize_locale_text
from newsroom.services.slugs import ensure_unique_slug, make_slug, slug_taken
from newsroom.services.text import format_reading_time, is_app_url, reading_time, strip_html, word_count
from newsroom.services.video import embed_url, thumbnail_url

logger = logging.getLogger(__name__)

class ArticleNotFound(NotFound):
    def __init__(self):
        super().__init__("Article not found")

class SlugConflict(Conflict):
    def __init__(self):
        super().__init__("Slug already exists")

# --- schemas -----------------------------------------------------------------

class CoverPoint(BaseModel):
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)

CoverPosition = Union[Literal["top", "center", "bottom"], CoverPoint]

class ArticleMeta(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    cover_position: Optional[CoverPosition] = Field(default=None, alias="coverPosition")

    def to_doc(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

class ArticleFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: RequiredLocalizedField
    excerpt: Optional[LocalizedField] = None
    content: Optional[LocalizedField] = None
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    cover_url: Optional[str] = Field(default=None, alias="coverUrl")
    # Older clients send the cover under this name
    hero_image_url: Optional[str] = Field(default=None, alias="heroImageUrl")
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    video_only: bool = Field(default=False, alias="videoOnly")
    reading_time: Optional[Union[NonNegativeInt, str]] = Field(default=None, alias="readingTime")
    meta: Optional[ArticleMeta] = None

    @field_validator("cover_url", "hero_image_url")
    @classmethod
    def _check_cover(cls, v: Optional[str]) -> Optional[str]:
        # Empty string clears the cover
        if v and not is_app_url(v):
            raise ValueError('Must be an absolute URL or a path starting with "/"')
        return v

    @field_validator("video_url")
    @classmethod
    def _check_video(cls, v: Optional[str]) -> Optional[str]:
        if v and not re.match(r"^https?://", v):
            raise ValueError("Must be an absolute http(s) URL")
        return v

    @field_validator("reading_time")
    @classmethod
    def _check_reading_time(cls, v):
        if isinstance(v, str) and not v:
            raise ValueError("must not be empty")
        return v

    def cover(self) -> Optional[str]:
        return self.cover_url if self.cover_url is not None else self.hero_image_url

class ArticleCreate(ArticleFields):
    slug: Optional[str] = Field(default=None, min_length=3)

class ArticleUpdate(ArticleFields):
    preserve_slug: bool = Field(default=False, alias="preserveSlug")

@dataclass
class UpdateResult:
    article: Article
    slug_changed: bool
    new_slug: str

# --- rules -------------------------------------------------------------------

def _has_text(record: Optional[LocaleRecord]) -> bool:
    return record is not None and any(strip_html(record.get(loc)) for loc in LOCALES)

def check_requirements(payload: ArticleFields) -> list[str]:
    """Field messages for conditionally required fields; empty when the payload is complete."""
    issues = []
    if payload.video_only:
        if not (payload.video_url or "").strip():
            issues.append("videoUrl: videoUrl is required for video-only articles")
    else:
        if not _has_text(payload.content):
            issues.append("content: content is required")
        if not (payload.category_id or "").strip():
            issues.append("categoryId: categoryId is required")
    return issues

def _computed_reading_time(content: Optional[LocaleRecord]) -> Optional[str]:
    if not _has_text(content):
        return None
    # Longest translation decides
    return reading_time(max((content.en, content.pl), key=word_count))

def _resolved_reading_time(payload: ArticleFields) -> Optional[str]:
    if payload.reading_time is not None:
        return format_reading_time(payload.reading_time)
    return _computed_reading_time(payload.content)

def _record_or_none(record: Optional[LocaleRecord]) -> Optional[dict]:
    if record is None or record.is_blank():
        return None
    return record.to_dict()

def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)

# --- operations --------------------------------------------------------------

async def get_article(session: AsyncSession, slug: str) -> Optional[Article]:
    q = select(Article).where(Article.slug == slug)
    return (await session.execute(q)).scalars().first()

async def create_article(session: AsyncSession, payload: ArticleCreate) -> Article:
    issues = check_requirements(payload)
    if issues:
        raise PayloadInvalid(issues)

    slug = make_slug(payload.slug or payload.title.en)
    if not slug:
        raise PayloadInvalid(["slug: cannot derive a slug from the title"])
    if await slug_taken(session, slug):
        raise SlugConflict()

    now = _utc_now()
    article = Article(
        slug=slug,
        title=payload.title.to_dict(),
        excerpt=_record_or_none(payload.excerpt),
        content=_record_or_none(payload.content),
        category_id=(payload.category_id or "").strip() or None,
        cover_url=payload.cover() or None,
        video_url=payload.video_url or None,
        is_video_only=payload.video_only,
        reading_time=_resolved_reading_time(payload),
        status="published",
        meta=payload.meta.to_doc() if payload.meta else None,
        created_at=now,
        updated_at=now,
    )
    session.add(article)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise SlugConflict()
    logger.info("created article %s", slug)
    return article

async def update_article(session: AsyncSession, current_slug: str, payload: ArticleUpdate) -> UpdateResult:
    """
    Full-document write of an existing article.

    The slug is regenerated from the English title only when the caller did
    not ask to preserve it and the title-derived candidate differs from the
    current slug. No revision check: the last writer wins.
    """
    issues = check_requirements(payload)
    if issues:
        raise PayloadInvalid(issues)

    article = await get_article(session, current_slug)
    if article is None:
        raise ArticleNotFound()

    article.title = payload.title.to_dict()
    article.status = "published"
    article.updated_at = _utc_now()

    if payload.excerpt is not None:
        article.excerpt = _record_or_none(payload.excerpt)
    if payload.content is not None:
        article.content = _record_or_none(payload.content)
    if payload.meta is not None:
        article.meta = payload.meta.to_doc() or None

    if payload.reading_time is not None:
        article.reading_time = format_reading_time(payload.reading_time)
    elif payload.content is not None:
        article.reading_time = _computed_reading_time(payload.content)

    if payload.category_id is not None:
        article.category_id = payload.category_id.strip() or None

    cover = payload.cover()
    if cover is not None:
        article.cover_url = cover or None
    if payload.video_url is not None:
        article.video_url = payload.video_url or None

    article.is_video_only = payload.video_only
    if payload.video_only:
        # Nothing stale survives the switch to video-only
        if not (payload.category_id or "").strip():
            article.category_id = None
        if not _has_text(payload.content):
            article.content = None
            if payload.reading_time is None:
                article.reading_time = None

    final_slug = current_slug
    desired = make_slug(payload.title.en)
    if not payload.preserve_slug and desired and desired != current_slug:
        final_slug = await ensure_unique_slug(session, desired, exclude_id=article.id)
        article.slug = final_slug

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise SlugConflict()

    if final_slug != current_slug:
        logger.info("article slug changed %s -> %s", current_slug, final_slug)
    return UpdateResult(article=article, slug_changed=final_slug != current_slug, new_slug=final_slug)

async def delete_article(session: AsyncSession, slug: str) -> None:
    res = await session.execute(delete(Article).where(Article.slug == slug))
    await session.commit()
    if res.rowcount == 0:
        raise ArticleNotFound()
    logger.info("deleted article %s", slug)

async def list_articles(
    session: AsyncSession,
    page_no: int = 1,
    limit: int = 9,
    categories: Sequence[str] = (),
    search: Optional[str] = None,
    video_only: bool = False,
    published_only: bool = True,
) -> tuple[list[Article], int]:
    conds = []
    if published_only:
        # Legacy rows carry no status
        conds.append(or_(Article.status == "published", Article.status.is_(None)))
    if len(categories) == 1:
        conds.append(Article.category_id == categories[0])
    elif categories:
        conds.append(Article.category_id.in_(list(categories)))
    if video_only:
        conds.append(Article.is_video_only == True)  # noqa: E712
        conds.append(Article.video_url.is_not(None))
        conds.append(Article.video_url != "")
    term = (search or "").strip().lower()
    if term:
        conds.append(
            or_(
                func.lower(Article.slug, type_=String).contains(term, autoescape=True),
                func.lower(cast(Article.title, String), type_=String).contains(term, autoescape=True),
            )
        )

    stmt = (
        select(Article)
        .where(*conds)
        .order_by(desc(Article.created_at), desc(Article.id))
        .offset((page_no - 1) * limit)
        .limit(limit)
    )
    rows = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(select(func.count()).select_from(Article).where(*conds))).scalar_one()
    return list(rows), total

# --- views -------------------------------------------------------------------

def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _cover_meta(a: Article) -> Optional[dict]:
    pos = (a.meta or {}).get("coverPosition")
    return {"coverPosition": pos} if pos else None

def editable_view(a: Article) -> dict:
    return {
        "id": a.id,
        "slug": a.slug,
        "title": normalize_locale_text(a.title).to_dict(),
        "excerpt": normalize_locale_text(a.excerpt).to_dict(),
        "content": normalize_locale_text(a.content).to_dict(),
        "categoryId": a.category_id,
        "coverUrl": a.cover_url,
        "heroImageUrl": a.cover_url,
        "videoUrl": a.video_url,
        "isVideoOnly": bool(a.is_video_only),
        "readingTime": a.reading_time,
        "status": a.status,
        "meta": a.meta,
        "createdAt": _iso(a.created_at),
        "updatedAt": _iso(a.updated_at),
    }

def public_view(a: Article, locale: str) -> dict:
    return {
        "id": a.id,
        "slug": a.slug,
        "title": normalize_locale_text(a.title).get(locale),
        "excerpt": normalize_locale_text(a.excerpt).get(locale),
        "categoryId": a.category_id,
        "coverUrl": a.cover_url,
        "status": a.status,
        "createdAt": _iso(a.created_at),
        "updatedAt": _iso(a.updated_at),
        "readingTime": a.reading_time,
        "meta": _cover_meta(a),
    }

def public_detail_view(a: Article, locale: str) -> dict:
    out = public_view(a, locale)
    out["content"] = normalize_locale_text(a.content).get(locale)
    out["videoUrl"] = a.video_url
    out["isVideoOnly"] = bool(a.is_video_only)
    return out

def video_view(a: Article, locale: str) -> dict:
    out = public_view(a, locale)
    out["videoUrl"] = a.video_url
    out["isVideoOnly"] = True
    out["embedUrl"] = embed_url(a.video_url) if a.video_url else None
    out["thumbnailUrl"] = thumbnail_url(a.video_url) if a.video_url else None
    return out
