"""Policy ingestion CLI — rebuilds the vector index from a directory of markdown files.

Usage:
    policy-rag-ingest [-v] [DIR]
    python -m policy_rag.cli.ingest data/policies

Exits 0 on success and 1 on any failure, in which case the stored corpus
is left as it was.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from policy_rag.application.services import IngestionReport
from policy_rag.config import get_settings
from policy_rag.infrastructure.database import async_session_factory, engine
from policy_rag.infrastructure.database.bootstrap import prepare_database
from policy_rag.infrastructure.dependencies import build_ingestion_service
from policy_rag.infrastructure.logging.log_config import setup_logging

logger = logging.getLogger(__name__)


async def run_ingestion(
    directory: Path,
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> IngestionReport:
    """Ingest ``directory`` in a single transaction."""
    settings = get_settings()
    async with session_factory() as session:
        service = build_ingestion_service(session, settings)
        try:
            report = await service.ingest_directory(directory)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return report


async def _main_async(directory: Path) -> IngestionReport:
    try:
        await prepare_database(engine, get_settings().database_url)
        return await run_ingestion(directory)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Chunk, embed and store policy markdown documents (full replace)."
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=settings.policy_dir,
        help=f"Directory containing *.md policy files (default: {settings.policy_dir})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every category at DEBUG level",
    )
    args = parser.parse_args(argv)

    setup_logging(settings, "DEBUG" if args.verbose else None)

    if not settings.openrouter_api_key.strip():
        logger.error("OPENROUTER_API_KEY is not configured")
        return 1

    try:
        report = asyncio.run(_main_async(Path(args.directory)))
    except Exception:
        logger.exception("Ingestion failed")
        return 1

    print(f"Files: {report.files}")
    print(f"Chunks: {report.total_chunks}")
    for category, count in sorted(report.chunks_per_category.items()):
        print(f"  {category}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
