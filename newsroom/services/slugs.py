from __future__ import annotations

import logging
import re
import unicodedata
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.errors import SlugCollisionError
from newsroom.models import Article

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 120
MAX_SLUG_ATTEMPTS = 2000

NON_SLUG_RE = re.compile(r"[^a-z0-9\s-]")
WS_RE = re.compile(r"\s+")
DASHES_RE = re.compile(r"-+")

# Letters NFKD leaves intact
TRANSLIT = str.maketrans({"ł": "l", "Ł": "L", "đ": "d", "Đ": "D", "ø": "o", "Ø": "O"})

def make_slug(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    decomposed = unicodedata.normalize("NFKD", (text or "").translate(TRANSLIT))
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    s = NON_SLUG_RE.sub("", ascii_only.lower()).strip()
    s = WS_RE.sub("-", s)
    s = DASHES_RE.sub("-", s).strip("-")
    return s[:max_length].rstrip("-")

async def slug_taken(session: AsyncSession, slug: str, exclude_id: Optional[str] = None) -> bool:
    q = select(Article.id).where(Article.slug == slug)
    if exclude_id is not None:
        q = q.where(Article.id != exclude_id)
    r = await session.execute(q.limit(1))
    return r.scalar_one_or_none() is not None

async def ensure_unique_slug(
    session: AsyncSession,
    base: str,
    exclude_id: Optional[str] = None,
    max_attempts: int = MAX_SLUG_ATTEMPTS,
) -> str:
    """
    Return ``base`` or the first free ``base-N`` (N >= 2).

    ``exclude_id`` is the document being renamed, so its own slug never counts
    as taken. Raises SlugCollisionError once ``max_attempts`` probes are spent.
    """
    clean = base or "post"
    candidate = clean
    for i in range(2, max_attempts + 2):
        if not await slug_taken(session, candidate, exclude_id):
            return candidate
        candidate = f"{clean}-{i}"
    logger.error("slug collision loop exhausted for %r after %d attempts", clean, max_attempts)
    raise SlugCollisionError(f"Slug collision loop for {clean!r}")
