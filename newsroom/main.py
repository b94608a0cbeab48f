from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from newsroom.core.config import Settings, settings as default_settings
from newsroom.core.db import init_models, make_engine, make_sessionmaker
from newsroom.core.errors import install_error_handlers
from newsroom.core.logging import setup_logging
from newsroom.core.scheduler import start_scheduler, shutdown_scheduler
from newsroom.core.security import ensure_user
from newsroom.api.public import router as public_router
from newsroom.api.admin import router as admin_router
from newsroom.api.auth import router as auth_router

logger = logging.getLogger(__name__)

async def prepare_database(app: FastAPI) -> None:
    """Create tables and seed the configured admin account."""
    await init_models(app.state.engine)
    settings: Settings = app.state.settings
    if settings.admin_username and settings.admin_password:
        async with app.state.sessionmaker() as session:
            await ensure_user(session, settings.admin_username, settings.admin_password, role="admin")

def create_app(settings: Settings | None = None, run_scheduler: bool = True) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.log_level)

    app = FastAPI(title="Newsroom API", version="1.0.0")
    app.state.settings = settings
    app.state.engine = make_engine(settings)
    app.state.sessionmaker = make_sessionmaker(app.state.engine)
    app.state.scheduler = None

    origins = settings.cors_origin_list()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentialed requests against a wildcard origin
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(public_router)
    app.include_router(admin_router)

    @app.on_event("startup")
    async def on_startup():
        await prepare_database(app)
        if run_scheduler:
            app.state.scheduler = start_scheduler(app.state.sessionmaker, settings)
        logger.info("newsroom started (db=%s)", settings.db_path)

    @app.on_event("shutdown")
    async def on_shutdown():
        shutdown_scheduler(app.state.scheduler)
        await app.state.engine.dispose()

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app

app = create_app()
