import pytest

from conftest import article_payload, fetch_article
from newsroom.services import articles


async def _create(client, **overrides) -> dict:
    resp = await client.post("/api/articles", json=article_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_derives_slug_reading_time_and_status(admin_client):
    out = await _create(admin_client)
    assert out["slug"] == "hello-world"
    article = out["article"]
    assert article["readingTime"] == "1 min read"
    assert article["status"] == "published"
    assert article["title"] == {"en": "Hello World", "pl": "Hello World"}
    assert article["content"] == {"en": "<p>word word word</p>", "pl": "<p>word word word</p>"}


@pytest.mark.asyncio
async def test_create_duplicate_slug_conflicts(admin_client):
    await _create(admin_client)
    resp = await admin_client.post("/api/articles", json=article_payload())
    assert resp.status_code == 409
    assert resp.json() == {"error": "Slug already exists"}


@pytest.mark.asyncio
async def test_create_with_explicit_slug(editor_client):
    out = await _create(editor_client, slug="Custom Slug")
    assert out["slug"] == "custom-slug"


@pytest.mark.asyncio
async def test_create_requires_login_and_role(client, reader_client):
    resp = await client.post("/api/articles", json=article_payload())
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}

    resp = await reader_client.post("/api/articles", json=article_payload())
    assert resp.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"content": "<p> </p>"}, "content"),
        ({"categoryId": ""}, "categoryId"),
        ({"videoOnly": True}, "videoUrl"),
    ],
)
async def test_create_enforces_conditional_requirements(admin_client, overrides, field):
    resp = await admin_client.post("/api/articles", json=article_payload(**overrides))
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid JSON or body"
    assert any(d.startswith(field) for d in body["details"])


@pytest.mark.asyncio
async def test_create_rejects_malformed_body(admin_client):
    resp = await admin_client.post("/api/articles", json={"title": "", "coverUrl": "not-a-url"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid JSON or body"
    assert any(d.startswith("title") for d in body["details"])
    assert any(d.startswith("coverUrl") for d in body["details"])


@pytest.mark.asyncio
async def test_video_only_article_needs_no_content_or_category(admin_client):
    out = await _create(
        admin_client,
        title="Clip",
        content=None,
        categoryId=None,
        videoOnly=True,
        videoUrl="https://youtu.be/dQw4w9WgXcQ",
    )
    assert out["article"]["isVideoOnly"] is True
    assert out["article"]["readingTime"] is None


@pytest.mark.asyncio
async def test_update_with_preserve_slug_never_renames(admin_client, app):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit",
        json=article_payload(title="Completely Different", preserveSlug=True),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Article updated successfully"
    assert body["slugChanged"] is False
    assert body["newSlug"] == "hello-world"
    assert body["article"]["title"]["en"] == "Completely Different"

    stored = await fetch_article(app, "hello-world")
    assert stored is not None
    assert stored.title == {"en": "Completely Different", "pl": "Completely Different"}


@pytest.mark.asyncio
async def test_update_renames_when_title_changes(admin_client, app):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit",
        json=article_payload(title="Goodbye World"),
    )
    body = resp.json()
    assert body["slugChanged"] is True
    assert body["newSlug"] == "goodbye-world"
    assert await fetch_article(app, "hello-world") is None
    assert (await fetch_article(app, "goodbye-world")) is not None


@pytest.mark.asyncio
async def test_update_with_same_title_keeps_slug(admin_client):
    await _create(admin_client)
    resp = await admin_client.put("/api/admin/articles/hello-world/edit", json=article_payload(excerpt="New lead"))
    body = resp.json()
    assert body["slugChanged"] is False
    assert body["newSlug"] == "hello-world"
    assert body["article"]["excerpt"] == {"en": "New lead", "pl": "New lead"}


@pytest.mark.asyncio
async def test_update_rename_suffixes_taken_slug(admin_client):
    await _create(admin_client, title="Taken")
    await _create(admin_client, title="Taken 2")
    await _create(admin_client, title="Draft title")

    resp = await admin_client.put("/api/admin/articles/draft-title/edit", json=article_payload(title="Taken"))
    body = resp.json()
    assert body["slugChanged"] is True
    assert body["newSlug"] == "taken-3"


@pytest.mark.asyncio
async def test_update_uses_english_title_for_slug(admin_client):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit",
        json=article_payload(title={"en": "English Title", "pl": "Polski tytuł"}),
    )
    body = resp.json()
    assert body["newSlug"] == "english-title"
    assert body["article"]["title"] == {"en": "English Title", "pl": "Polski tytuł"}


@pytest.mark.asyncio
async def test_update_recomputes_reading_time_unless_given(admin_client):
    await _create(admin_client)
    long_content = "<p>" + "word " * 450 + "</p>"
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit", json=article_payload(content=long_content)
    )
    assert resp.json()["article"]["readingTime"] == "3 min read"

    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit", json=article_payload(content=long_content, readingTime=10)
    )
    assert resp.json()["article"]["readingTime"] == "10 min read"


@pytest.mark.asyncio
async def test_switch_to_video_only_clears_stale_fields(admin_client):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit",
        json={
            "title": "Hello World",
            "videoOnly": True,
            "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "content": "",
            "categoryId": "",
        },
    )
    assert resp.status_code == 200, resp.text
    article = resp.json()["article"]
    assert article["isVideoOnly"] is True
    assert article["categoryId"] is None
    assert article["content"] == {"en": "", "pl": ""}
    assert article["readingTime"] is None


@pytest.mark.asyncio
async def test_switch_to_video_only_clears_fields_left_out_of_body(admin_client, app):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit",
        json={
            "title": "Hello World",
            "videoOnly": True,
            "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        },
    )
    assert resp.status_code == 200, resp.text
    article = resp.json()["article"]
    assert article["categoryId"] is None
    assert article["content"] == {"en": "", "pl": ""}
    assert article["readingTime"] is None
    assert article["excerpt"] == {"en": "A short excerpt", "pl": "A short excerpt"}

    stored = await fetch_article(app, "hello-world")
    assert stored.content is None
    assert stored.category_id is None
    assert stored.reading_time is None


@pytest.mark.asyncio
async def test_exhausted_slug_suffixes_give_server_error(admin_client, monkeypatch):
    real = articles.ensure_unique_slug

    async def short_ceiling(session, base, exclude_id=None):
        return await real(session, base, exclude_id=exclude_id, max_attempts=2)

    monkeypatch.setattr(articles, "ensure_unique_slug", short_ceiling)
    await _create(admin_client, title="Taken")
    await _create(admin_client, title="Taken 2")
    await _create(admin_client, title="Draft title")

    resp = await admin_client.put("/api/admin/articles/draft-title/edit", json=article_payload(title="Taken"))
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}

    # The failed rename left the article where it was
    assert (await admin_client.get("/api/admin/articles/draft-title/edit")).status_code == 200


@pytest.mark.asyncio
async def test_update_enforces_requirements(admin_client):
    await _create(admin_client)
    resp = await admin_client.put(
        "/api/admin/articles/hello-world/edit", json={"title": "Hello World", "videoOnly": True}
    )
    assert resp.status_code == 400
    assert resp.json()["details"] == ["videoUrl: videoUrl is required for video-only articles"]


@pytest.mark.asyncio
async def test_update_missing_article(admin_client):
    resp = await admin_client.put("/api/admin/articles/nope/edit", json=article_payload())
    assert resp.status_code == 404
    assert resp.json() == {"error": "Article not found"}


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin(client, editor_client):
    for c in (client, editor_client):
        resp = await c.put("/api/admin/articles/hello-world/edit", json=article_payload())
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_get_editable_and_slug_check(admin_client):
    await _create(admin_client)
    resp = await admin_client.get("/api/admin/articles/hello-world/edit")
    assert resp.status_code == 200
    assert resp.json()["slug"] == "hello-world"

    resp = await admin_client.get("/api/admin/articles/missing/edit")
    assert resp.status_code == 404

    assert (await admin_client.get("/api/admin/articles-slug-check", params={"slug": "hello-world"})).json() == {
        "exists": True
    }
    assert (await admin_client.get("/api/admin/articles-slug-check", params={"slug": "other"})).json() == {
        "exists": False
    }


@pytest.mark.asyncio
async def test_delete_article(admin_client, app):
    await _create(admin_client)
    resp = await admin_client.delete("/api/admin/articles/hello-world")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert await fetch_article(app, "hello-world") is None

    resp = await admin_client.delete("/api/admin/articles/hello-world")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_listing(admin_client):
    await _create(admin_client, title="First")
    await _create(admin_client, title="Second")
    resp = await admin_client.get("/api/admin/articles", params={"search": "sec"})
    body = resp.json()
    assert body["total"] == 1
    assert body["articles"][0]["slug"] == "second"


@pytest.mark.asyncio
async def test_article_named_slug_is_reachable(admin_client):
    out = await _create(admin_client, title="Slug")
    assert out["slug"] == "slug"

    resp = await admin_client.get("/api/admin/articles/slug")
    assert resp.status_code == 200
    assert resp.json()["slug"] == "slug"
