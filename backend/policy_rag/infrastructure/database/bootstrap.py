"""Database bootstrap shared by the API lifespan and the ingestion CLI.

Ensures the target PostgreSQL database exists, enables the ``vector``
extension and creates missing tables. Existing tables are never altered.
"""

import logging

import asyncpg
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine

from policy_rag.infrastructure.database.base import Base

# Registers every table on Base.metadata
from policy_rag.infrastructure.database import models  # noqa: F401

logger = logging.getLogger(__name__)


async def ensure_database_exists(database_url: str) -> None:
    """Issue ``CREATE DATABASE`` through the ``postgres`` maintenance DB when missing.

    Only applies to ``postgresql://`` URLs. Connection problems are logged and
    left for the engine to report on first use.
    """
    url = make_url(database_url)
    if url.drivername != "postgresql" or not url.database:
        return

    db_name = url.database
    maintenance_dsn = url.set(database="postgres").render_as_string(hide_password=False)

    try:
        conn = await asyncpg.connect(maintenance_dsn)
    except (OSError, asyncpg.PostgresError) as exc:
        logger.warning("Could not reach PostgreSQL to check database '%s': %s", db_name, exc)
        return

    try:
        if await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name):
            logger.debug("Database '%s' already exists", db_name)
            return
        # CREATE DATABASE cannot run inside a transaction block
        await conn.execute(f'CREATE DATABASE "{db_name}"')
        logger.info("Created database '%s'", db_name)
    except asyncpg.PostgresError as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)
    finally:
        await conn.close()


async def prepare_schema(engine: AsyncEngine) -> None:
    """Enable pgvector (on PostgreSQL) and create all tables."""
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)


async def prepare_database(engine: AsyncEngine, database_url: str) -> None:
    await ensure_database_exists(database_url)
    await prepare_schema(engine)
