import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select

from newsroom.core.config import Settings
from newsroom.core.security import create_user
from newsroom.main import create_app, prepare_database
from newsroom.models import Article

ADMIN = ("admin", "admin-password")
EDITOR = ("editor", "editor-password")
READER = ("reader", "reader-password")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DB_PATH=str(tmp_path / "test.db"),
        SESSION_COOKIE_SECURE=False,
        DEFAULT_LOCALE="en",
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    app = create_app(settings, run_scheduler=False)
    await prepare_database(app)
    async with app.state.sessionmaker() as session:
        await create_user(session, *ADMIN, role="admin")
        await create_user(session, *EDITOR, role="editor")
        await create_user(session, *READER, role="user")
    yield app
    await app.state.engine.dispose()


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


async def login(client: httpx.AsyncClient, username: str, password: str) -> None:
    resp = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text


@pytest_asyncio.fixture
async def client(app):
    async with _client(app) as c:
        yield c


@pytest_asyncio.fixture
async def admin_client(app):
    async with _client(app) as c:
        await login(c, *ADMIN)
        yield c


@pytest_asyncio.fixture
async def editor_client(app):
    async with _client(app) as c:
        await login(c, *EDITOR)
        yield c


@pytest_asyncio.fixture
async def reader_client(app):
    async with _client(app) as c:
        await login(c, *READER)
        yield c


async def fetch_article(app, slug: str):
    """Read an article straight from the database in a fresh session."""
    async with app.state.sessionmaker() as session:
        return (await session.execute(select(Article).where(Article.slug == slug))).scalars().first()


def article_payload(**overrides) -> dict:
    payload = {
        "title": "Hello World",
        "excerpt": "A short excerpt",
        "content": "<p>word word word</p>",
        "categoryId": "cat1",
    }
    payload.update(overrides)
    return payload
