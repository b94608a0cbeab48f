from __future__ import annotations

import math
import re
from typing import Optional

from bs4 import BeautifulSoup

WORDS_PER_MINUTE = 200
WS_RE = re.compile(r"\s+")

def strip_html(html: Optional[str]) -> str:
    # Visible text only, whitespace collapsed
    if not html:
        return ""
    if "<" not in html:
        return WS_RE.sub(" ", html).strip()
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return WS_RE.sub(" ", soup.get_text(" ")).strip()

def word_count(html: Optional[str]) -> int:
    text = strip_html(html)
    return len(text.split()) if text else 0

def reading_time(html: Optional[str], words_per_minute: int = WORDS_PER_MINUTE) -> Optional[str]:
    if not strip_html(html):
        return None
    minutes = max(1, math.ceil(word_count(html) / words_per_minute))
    return f"{minutes} min read"

def format_reading_time(value: int | str) -> str:
    if isinstance(value, int):
        return f"{value} min read"
    return value.strip()

def is_app_url(value: str) -> bool:
    # Absolute URL or a path served by the app itself
    return bool(re.match(r"^https?://", value)) or value.startswith("/")
