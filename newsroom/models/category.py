from __future__ import annotations

import datetime as dt
import uuid

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from newsroom.core.db import Base

class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    # Locale record; legacy rows may hold a plain string
    name: Mapped[dict | str] = mapped_column(JSON, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
