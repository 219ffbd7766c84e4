"""Centralized logging configuration for the API and the ingestion CLI.

Per-category levels come from Settings, so noisy loggers (SQLAlchemy,
httpx/httpcore) can be silenced without touching the pipeline or provider
logs. The CLI may force one level onto every category with ``override``.

Usage:
    from policy_rag.infrastructure.logging.log_config import setup_logging
    setup_logging()                      # API lifespan
    setup_logging(settings, "DEBUG")     # policy-rag-ingest --verbose
"""

import logging
import sys

from policy_rag.config import Settings, get_settings


# ── Settings field → logger names ───────────────────────────────────

_CATEGORY_MAP: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_pipeline": (
        "IngestionPipeline",
        "policy_rag.application.services.ingestion_service",
        "policy_rag.application.services.chunker",
    ),
    "log_level_openrouter": (
        "policy_rag.infrastructure.openrouter",
        "policy_rag.application.services.retry_executor",
        "policy_rag.application.services.embedding_client",
    ),
}

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def setup_logging(settings: Settings | None = None, override: str | None = None) -> None:
    """Apply root and per-category levels. Safe to call more than once."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(override or settings.log_level))

    # Uvicorn usually installs a handler; scripts and tests may not.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)

    levels: dict[str, str] = {}
    for settings_field, logger_names in _CATEGORY_MAP.items():
        raw = override or getattr(settings, settings_field)
        levels[settings_field.removeprefix("log_level_")] = raw.upper()
        for name in logger_names:
            logging.getLogger(name).setLevel(_parse_level(raw))

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s %s",
        (override or settings.log_level).upper(),
        " ".join(f"{k}={v}" for k, v in levels.items()),
    )


def _parse_level(raw: str) -> int:
    """Level name → logging constant; unknown names fall back to INFO."""
    numeric = logging.getLevelName(raw.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO
