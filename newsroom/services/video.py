from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit, parse_qs

def youtube_id(url: str) -> Optional[str]:
    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https"):
        return None
    host = parts.netloc.lower()
    for prefix in ("m.", "www."):
        if host.startswith(prefix):
            host = host[len(prefix):]

    segments = [s for s in parts.path.split("/") if s]

    if host == "youtu.be":
        return segments[0] if segments else None

    if host.endswith("youtube.com"):
        v = parse_qs(parts.query).get("v")
        if v and v[0]:
            return v[0]
        if len(segments) >= 2 and segments[0] in ("shorts", "embed", "live"):
            return segments[1]
    return None

def embed_url(url: str) -> str:
    vid = youtube_id(url)
    return f"https://www.youtube.com/embed/{vid}" if vid else url

def thumbnail_url(url: str) -> Optional[str]:
    vid = youtube_id(url)
    return f"https://img.youtube.com/vi/{vid}/hqdefault.jpg" if vid else None
