"""
User registration & login service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as users_router
from auth.routes import router as auth_router
from auth.service import build_auth_service
from config.settings import Settings, config
from database.session import build_engine, build_session_factory, create_tables
from database.user_store import InMemoryUserStore, SqlUserStore, UserStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_user_store(settings: Settings) -> Tuple[UserStore, Optional[AsyncEngine]]:
    """Pick the store backend; the engine is returned so it can be disposed."""
    if settings.user_store_backend == "memory":
        logger.warning("Using in-memory user store; users are lost on restart")
        return InMemoryUserStore(), None
    engine = build_engine(settings.database_url, echo=settings.debug)
    return SqlUserStore(build_session_factory(engine)), engine


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = config
    app = FastAPI(
        title="User Auth Service",
        version="1.0.0",
        description="User registration and JWT login.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    store, engine = build_user_store(settings)
    app.state.auth_service = build_auth_service(settings, store)

    # Routes
    app.include_router(users_router, prefix="/users")
    app.include_router(auth_router, prefix="/auth")

    @app.on_event("startup")
    async def on_startup():
        if engine is not None:
            logger.info("Ensuring users table exists…")
            await create_tables(engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        if engine is not None:
            await engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
