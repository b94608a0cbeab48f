"""
Local persistence of unsaved editor state.

A draft is a snapshot of every editable field, stored as JSON under a key
built from locale, editor mode and slug. Reading a blob that does not parse,
or that carries another format version, yields no draft at all.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import os
from pathlib import Path
from typing import Iterator, MutableMapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from newsroom.editor.fields import EditorFields
from newsroom.services.articles import CoverPoint

logger = logging.getLogger(__name__)

DRAFT_VERSION = 1
CREATE_BUCKET = "create"

def draft_key(locale: str, mode: str, slug: Optional[str]) -> str:
    return f"article-draft:{locale}:{mode}:{slug or CREATE_BUCKET}"

class DraftSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int = DRAFT_VERSION
    saved_at: dt.datetime = Field(alias="savedAt")

    title: str = ""
    excerpt: str = ""
    content: str = ""
    category_id: str = Field(default="", alias="categoryId")
    cover_url: str = Field(default="", alias="coverUrl")
    cover_position: CoverPoint = Field(default_factory=lambda: CoverPoint(x=50, y=50), alias="coverPosition")
    video_url: str = Field(default="", alias="videoUrl")
    video_only: bool = Field(default=False, alias="videoOnly")

    @classmethod
    def from_fields(cls, fields: EditorFields, saved_at: dt.datetime) -> "DraftSnapshot":
        return cls(
            saved_at=saved_at,
            title=fields.title,
            excerpt=fields.excerpt,
            content=fields.content,
            category_id=fields.category_id,
            cover_url=fields.cover_url,
            cover_position=fields.cover_position,
            video_url=fields.video_url,
            video_only=fields.video_only,
        )

    def to_fields(self) -> EditorFields:
        return EditorFields(
            title=self.title,
            excerpt=self.excerpt,
            content=self.content,
            category_id=self.category_id,
            cover_url=self.cover_url,
            cover_position=self.cover_position,
            video_url=self.video_url,
            video_only=self.video_only,
        )

class FileStorage(MutableMapping[str, str]):
    """String key/value store kept in a single JSON file."""

    def __init__(self, path: str | os.PathLike):
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("draft file %s is not valid JSON, starting empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self._path)

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = self._read()
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._read())

    def __len__(self) -> int:
        return len(self._read())

class DraftStore:
    def __init__(self, storage: Optional[MutableMapping[str, str]] = None):
        # A plain dict works as in-memory storage
        self._storage = storage if storage is not None else {}

    def load(self, key: str) -> Optional[DraftSnapshot]:
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            snap = DraftSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.debug("ignoring malformed draft %s", key)
            return None
        if snap.version != DRAFT_VERSION:
            logger.debug("ignoring draft %s with version %s", key, snap.version)
            return None
        return snap

    def save(self, key: str, fields: EditorFields, saved_at: dt.datetime) -> None:
        self._storage[key] = DraftSnapshot.from_fields(fields, saved_at).model_dump_json(by_alias=True)

    def clear(self, key: str) -> None:
        self._storage.pop(key, None)

    def move(self, old_key: str, new_key: str) -> None:
        raw = self._storage.pop(old_key, None)
        if raw is not None:
            self._storage[new_key] = raw
