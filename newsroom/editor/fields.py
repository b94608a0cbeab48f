from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from newsroom.services.articles import CoverPoint
from newsroom.services.locale import normalize_locale_text
from newsroom.services.text import strip_html

ANCHOR_POINTS = {
    "top": CoverPoint(x=50, y=0),
    "center": CoverPoint(x=50, y=50),
    "bottom": CoverPoint(x=50, y=100),
}

def cover_point(value: Any) -> CoverPoint:
    """Focal point from a named anchor or an {x, y} pair; centre when unknown."""
    if isinstance(value, CoverPoint):
        return value
    if isinstance(value, str) and value in ANCHOR_POINTS:
        return ANCHOR_POINTS[value]
    if isinstance(value, dict) and "x" in value and "y" in value:
        try:
            return CoverPoint(x=value["x"], y=value["y"])
        except ValueError:
            pass
    return ANCHOR_POINTS["center"]

def _long_enough(s: str) -> bool:
    return len(s.strip()) > 3

@dataclass
class EditorFields:
    """Everything the editor lets a user change, in the editing locale."""

    title: str = ""
    excerpt: str = ""
    content: str = ""
    category_id: str = ""
    cover_url: str = ""
    cover_position: CoverPoint = field(default_factory=lambda: ANCHOR_POINTS["center"])
    video_url: str = ""
    video_only: bool = False

    def ready(self) -> bool:
        """Minimum fields for a background save in the current mode."""
        if not _long_enough(self.title):
            return False
        if self.video_only:
            return bool(self.video_url.strip())
        return bool(self.category_id.strip()) and bool(strip_html(self.content))

    def to_payload(self) -> dict:
        return {
            "title": self.title,
            "excerpt": self.excerpt,
            "content": self.content,
            "categoryId": self.category_id,
            "coverUrl": self.cover_url,
            "videoUrl": self.video_url,
            "videoOnly": self.video_only,
        }

    @classmethod
    def from_server(cls, data: dict, locale: str) -> "EditorFields":
        meta: Optional[dict] = data.get("meta") or {}
        return cls(
            title=normalize_locale_text(data.get("title")).get(locale),
            excerpt=normalize_locale_text(data.get("excerpt")).get(locale),
            content=normalize_locale_text(data.get("content")).get(locale),
            category_id=data.get("categoryId") or "",
            cover_url=data.get("coverUrl") or data.get("heroImageUrl") or "",
            cover_position=cover_point(meta.get("coverPosition")),
            video_url=data.get("videoUrl") or "",
            video_only=bool(data.get("isVideoOnly") or data.get("videoOnly")),
        )
