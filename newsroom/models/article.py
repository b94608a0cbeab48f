from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import String, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from newsroom.core.db import Base

def _new_id() -> str:
    return uuid.uuid4().hex

class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_created_at", "created_at"),
        Index("ix_articles_category_id", "category_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)

    # Externally visible identifier, unique across the collection
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    # Locale records: {"en": ..., "pl": ...}
    title: Mapped[dict] = mapped_column(JSON, nullable=False)
    excerpt: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    content: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    category_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(String, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String, nullable=True)
    is_video_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    reading_time: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="published")
    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
