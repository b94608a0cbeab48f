from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import Callable, Optional

import httpx

from newsroom.core.timers import Debouncer, Timers
from newsroom.editor.client import ApiError, ArticlesClient
from newsroom.editor.drafts import DraftStore, draft_key
from newsroom.editor.fields import EditorFields
from newsroom.services.locale import LocaleRecord, normalize_locale_text
from newsroom.services.slugs import make_slug

logger = logging.getLogger(__name__)

DRAFT_DELAY_S = 0.4
AUTOSAVE_DELAY_S = 1.2
SLUG_CHECK_DELAY_S = 0.45

LOCALIZED_FIELDS = ("title", "excerpt", "content")

MESSAGES = {
    "en": {
        "saved": "Article saved",
        "created": "Article created",
        "slug_in_use": "Slug already in use",
        "network": "Network error",
        "load_failed": "Could not load the article",
    },
    "pl": {
        "saved": "Artykuł zapisany",
        "created": "Artykuł utworzony",
        "slug_in_use": "Ten slug jest już zajęty",
        "network": "Błąd sieci",
        "load_failed": "Nie udało się wczytać artykułu",
    },
}

Notify = Callable[[str, str], None]
Navigate = Callable[[str], None]

class ArticleEditor:
    """
    Editing session for one article in one locale.

    Field edits are kept in ``fields``. Each edit schedules a local draft
    write and, once the article exists on the server, a silent autosave that
    never changes the slug. ``save()`` is the explicit save: it may rename the
    article, in which case the draft key follows and ``navigate`` is called
    with the new edit URL.
    """

    def __init__(
        self,
        client: ArticlesClient,
        drafts: DraftStore,
        timers: Timers,
        locale: str,
        slug: Optional[str] = None,
        notify: Optional[Notify] = None,
        navigate: Optional[Navigate] = None,
    ):
        self._client = client
        self._drafts = drafts
        self._timers = timers
        self._notify_cb = notify
        self._navigate_cb = navigate

        self.locale = locale
        self.mode = "edit" if slug else "create"
        self.slug = slug
        self.url = self._edit_url(slug) if slug else f"/{locale}/admin/articles/new"

        self.fields = EditorFields()
        self.dirty = False
        self.saving = False
        self.last_saved_at: Optional[dt.datetime] = None
        self.slug_available: Optional[bool] = True if slug else None
        self.not_found = False
        self.load_error: Optional[str] = None

        self._meta: dict = {}
        # Server copy of the translated fields; the other locale is sent back untouched
        self._translations: dict[str, LocaleRecord] = {}
        # Bumped on every edit so a save can tell whether it covered the latest state
        self._revision = 0

        self._draft_writer = Debouncer(timers, DRAFT_DELAY_S, self._persist_draft)
        self._autosaver = Debouncer(timers, AUTOSAVE_DELAY_S, self.autosave)
        self._slug_checker = Debouncer(timers, SLUG_CHECK_DELAY_S, self._check_slug)

    # --- helpers ---------------------------------------------------------

    @property
    def draft_key(self) -> str:
        return draft_key(self.locale, self.mode, self.slug)

    @property
    def visible_slug(self) -> str:
        return self.slug if self.mode == "edit" else make_slug(self.fields.title)

    def _text(self, key: str) -> str:
        return MESSAGES.get(self.locale, MESSAGES["en"])[key]

    def _edit_url(self, slug: str) -> str:
        return f"/{self.locale}/admin/articles/{slug}/edit"

    def _notify(self, level: str, message: str) -> None:
        if self._notify_cb:
            self._notify_cb(level, message)

    def _go(self, url: str) -> None:
        self.url = url
        if self._navigate_cb:
            self._navigate_cb(url)

    def _payload(self, preserve_slug: Optional[bool] = None) -> dict:
        payload = self.fields.to_payload()
        for name in LOCALIZED_FIELDS:
            record = self._translations.get(name)
            if record is not None:
                payload[name] = {**record.to_dict(), self.locale: payload[name]}
        payload["meta"] = {**self._meta, "coverPosition": self.fields.cover_position.model_dump()}
        if preserve_slug is not None:
            payload["preserveSlug"] = preserve_slug
        return payload

    def _mark_saved(self, revision: int, out: Optional[dict] = None) -> None:
        if out and out.get("article"):
            self._remember(out["article"])
        self.last_saved_at = self._timers.now()
        if revision != self._revision:
            # Edited while the request was in flight; keep the newer local state
            return
        self.dirty = False
        self._draft_writer.cancel()
        self._drafts.clear(self.draft_key)

    def _remember(self, article: dict) -> None:
        self._meta = {k: v for k, v in (article.get("meta") or {}).items() if k != "coverPosition"}
        self._translations = {name: normalize_locale_text(article.get(name)) for name in LOCALIZED_FIELDS}

    # --- lifecycle -------------------------------------------------------

    async def load(self) -> None:
        """Mount the editor. Safe to call again to retry a failed load."""
        if self.mode == "create":
            # A fresh create session must not inherit an abandoned attempt
            self._drafts.clear(self.draft_key)
            return

        try:
            data = await self._client.fetch_editable(self.slug)
        except ApiError as e:
            if e.not_found:
                self.not_found = True
                return
            self.load_error = e.first_message
            self._notify("error", e.first_message)
            return
        except httpx.HTTPError as e:
            logger.warning("loading %s failed: %s", self.slug, e)
            self.load_error = self._text("load_failed")
            self._notify("error", self.load_error)
            return

        self.not_found = False
        self.load_error = None
        self.fields = EditorFields.from_server(data, self.locale)
        self._remember(data)

        snap = self._drafts.load(self.draft_key)
        if snap is not None:
            # Unsaved local work wins over the server copy
            self.fields = snap.to_fields()
            self.dirty = True
            logger.info("restored local draft for %s", self.slug)

    def set(self, **changes) -> None:
        self.fields = dataclasses.replace(self.fields, **changes)
        self.dirty = True
        self._revision += 1
        self._draft_writer.trigger()
        if self.mode == "edit":
            self._autosaver.trigger()
        elif "title" in changes:
            self._slug_checker.trigger()

    async def hide(self) -> None:
        """Tab hidden or page unloading: write the pending draft now."""
        await self._draft_writer.flush()

    def close(self) -> None:
        self._draft_writer.cancel()
        self._autosaver.cancel()
        self._slug_checker.cancel()

    # --- scheduled work --------------------------------------------------

    def _persist_draft(self) -> None:
        self._drafts.save(self.draft_key, self.fields, self._timers.now())

    async def _check_slug(self) -> None:
        slug = make_slug(self.fields.title)
        if len(slug) < 3:
            self.slug_available = None
            return
        try:
            self.slug_available = not await self._client.slug_exists(slug)
        except (ApiError, httpx.HTTPError) as e:
            # Unknown availability; the create call reports a conflict anyway
            logger.debug("slug check for %s failed: %s", slug, e)

    async def autosave(self) -> bool:
        """Silent background save; never renames, never navigates, never notifies."""
        if self.mode != "edit" or not self.slug:
            return False
        if not self.fields.ready() or self.slug_available is False:
            return False

        revision = self._revision
        self.saving = True
        try:
            out = await self._client.update(self.slug, self._payload(preserve_slug=True))
        except (ApiError, httpx.HTTPError) as e:
            # Retried by the next edit
            logger.debug("autosave of %s failed: %s", self.slug, e)
            return False
        finally:
            self.saving = False

        self._mark_saved(revision, out)
        return True

    # --- explicit save ---------------------------------------------------

    async def save(self) -> bool:
        self._autosaver.cancel()
        if self.mode == "create":
            return await self._create()
        return await self._update()

    async def _update(self) -> bool:
        revision = self._revision
        self.saving = True
        try:
            out = await self._client.update(self.slug, self._payload(preserve_slug=False))
        except ApiError as e:
            if e.not_found:
                self.not_found = True
            self._notify("error", e.first_message)
            return False
        except httpx.HTTPError as e:
            logger.warning("saving %s failed: %s", self.slug, e)
            self._notify("error", self._text("network"))
            return False
        finally:
            self.saving = False

        new_slug = out.get("newSlug") or self.slug
        renamed = bool(out.get("slugChanged")) and new_slug != self.slug
        if renamed:
            old_key = self.draft_key
            self.slug = new_slug
            self._drafts.move(old_key, self.draft_key)

        self._mark_saved(revision, out)
        if renamed:
            self._go(self._edit_url(new_slug))
        self._notify("success", self._text("saved"))
        return True

    async def _create(self) -> bool:
        if self.slug_available is False:
            self._notify("error", self._text("slug_in_use"))
            return False

        payload = self._payload()
        slug = make_slug(self.fields.title)
        if len(slug) >= 3:
            payload["slug"] = slug

        revision = self._revision
        self.saving = True
        try:
            out = await self._client.create(payload)
        except ApiError as e:
            if e.status == 409:
                self.slug_available = False
                self._notify("error", self._text("slug_in_use"))
            else:
                self._notify("error", e.first_message)
            return False
        except httpx.HTTPError as e:
            logger.warning("creating article failed: %s", e)
            self._notify("error", self._text("network"))
            return False
        finally:
            self.saving = False

        create_key = self.draft_key
        self.mode = "edit"
        self.slug = out["slug"]
        self.slug_available = True
        self._slug_checker.cancel()
        self._drafts.move(create_key, self.draft_key)

        self._mark_saved(revision, out)
        self._go(self._edit_url(self.slug))
        self._notify("success", self._text("created"))
        return True
