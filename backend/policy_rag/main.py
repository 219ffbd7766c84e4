"""FastAPI application factory for the policy RAG API."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from policy_rag.config import get_settings
from policy_rag.infrastructure.database import engine
from policy_rag.infrastructure.database.bootstrap import prepare_database
from policy_rag.infrastructure.logging.log_config import setup_logging
from policy_rag.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Bootstrap the database on startup, release the pool on shutdown."""
    settings = get_settings()
    setup_logging(settings)

    await prepare_database(engine, settings.database_url)
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY is empty; search and chat requests will fail")

    logger.info("%s %s ready (%s)", settings.app_title, settings.app_version, settings.app_env)
    yield

    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "policy_rag.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
