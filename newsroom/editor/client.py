from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from newsroom.core.config import settings

class ApiError(Exception):
    """Non-2xx answer from the articles API."""

    def __init__(self, status: int, message: str, details: Optional[list[str]] = None):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message
        self.details = details or []

    @property
    def first_message(self) -> str:
        # Field messages are more actionable than the generic error line
        return self.details[0] if self.details else self.message

    @property
    def not_found(self) -> bool:
        return self.status == 404

def _raise_for_error(resp: httpx.Response) -> None:
    if resp.status_code < 400:
        return
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    details = body.get("details")
    raise ApiError(
        resp.status_code,
        str(body.get("error") or resp.reason_phrase or "error"),
        [str(d) for d in details] if isinstance(details, list) else None,
    )

class ArticlesClient:
    """
    Thin client over the admin/article endpoints used by the editor.

    Pass an existing ``httpx.AsyncClient`` (it must carry the session cookie),
    or a base URL to let the client own its connection pool.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[int] = None,
    ):
        if client is None and base_url is None:
            raise ValueError("either client or base_url is required")
        self._owns_client = client is None
        timeout = httpx.Timeout(timeout_s or settings.request_timeout_seconds)
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        resp = await self._client.request(method, url, **kwargs)
        _raise_for_error(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def fetch_editable(self, slug: str) -> dict:
        return await self._request("GET", f"/api/admin/articles/{quote(slug)}/edit")

    async def update(self, slug: str, payload: dict) -> dict:
        return await self._request("PUT", f"/api/admin/articles/{quote(slug)}/edit", json=payload)

    async def create(self, payload: dict) -> dict:
        return await self._request("POST", "/api/articles", json=payload)

    async def delete(self, slug: str) -> None:
        await self._request("DELETE", f"/api/admin/articles/{quote(slug)}")

    async def slug_exists(self, slug: str) -> bool:
        out = await self._request("GET", "/api/admin/articles-slug-check", params={"slug": slug})
        return bool(out.get("exists"))
