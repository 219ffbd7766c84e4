"""Colored pipeline logger for policy ingestion runs.

Every ingestion stage gets its own color and icon so that a run of the
ingestion CLI can be followed at a glance:

    📁 SCAN      green     read the policy directory
    ✂️ CHUNK     yellow    split documents
    🧮 EMBED     magenta   embed chunk contents
    💾 REPLACE   blue      swap the stored corpus
    ✅ COMPLETE  green     summary
    ❌ ERROR     red       any failed step

Colors are dropped when stderr is not a terminal or ``NO_COLOR`` is set,
so redirected logs stay plain text.
"""

import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple


class _Ansi:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class PipelineStage:
    """Ingestion stages."""

    SCAN = Stage("SCAN", _Ansi.GREEN, "📁")
    CHUNK = Stage("CHUNK", _Ansi.YELLOW, "✂️")
    EMBED = Stage("EMBED", _Ansi.MAGENTA, "🧮")
    REPLACE = Stage("REPLACE", _Ansi.BLUE, "💾")
    ERROR = Stage("ERROR", _Ansi.RED, "❌")
    COMPLETE = Stage("COMPLETE", _Ansi.GREEN, "✅")


def _colors_enabled() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


class PipelineLogger:
    """Stage-aware wrapper around a stdlib logger.

    Usage:
        plog = PipelineLogger("IngestionPipeline")
        with plog.timed_step(PipelineStage.EMBED, "Embedding 320 chunk(s)"):
            vectors = await client.embed_batch(texts)
        plog.detail("FAQ.md", chunks=120)
    """

    def __init__(self, component_name: str, colors: bool | None = None):
        self._logger = logging.getLogger(component_name)
        self._colors = colors

    def _paint(self, text: str, *codes: str) -> str:
        enabled = _colors_enabled() if self._colors is None else self._colors
        if not enabled or not codes:
            return text
        return f"{''.join(codes)}{text}{_Ansi.RESET}"

    def _with_kwargs(self, text: str, kwargs: dict[str, Any]) -> str:
        if not kwargs:
            return text
        return f"{text} {self._paint('(' + _format_kwargs(kwargs) + ')', _Ansi.GRAY)}"

    def step_start(self, stage: Stage, message: str, **kwargs: Any) -> None:
        head = self._paint(f"{stage.icon} [{stage.label}]", stage.color, _Ansi.BOLD)
        self._logger.info(self._with_kwargs(f"{head} {self._paint(message, stage.color)}", kwargs))

    def step_complete(self, stage: Stage, message: str, **kwargs: Any) -> None:
        head = self._paint(f"{stage.icon} [{stage.label}]", stage.color)
        body = self._paint(f"✓ {message}", _Ansi.GREEN)
        self._logger.info(self._with_kwargs(f"{head} {body}", kwargs))

    def step_error(self, stage: Stage, message: str, error: Exception | None = None) -> None:
        head = self._paint(f"{PipelineStage.ERROR.icon} [{stage.label}]", _Ansi.RED, _Ansi.BOLD)
        line = f"{head} {self._paint(message, _Ansi.RED)}"
        if error is not None:
            line += " " + self._paint(f"→ {type(error).__name__}: {error}", _Ansi.DIM)
        self._logger.error(line)

    def detail(self, message: str, **kwargs: Any) -> None:
        self._logger.info(self._with_kwargs("   " + self._paint(f"├─ {message}", _Ansi.GRAY), kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(self._with_kwargs("   " + self._paint(f"⚠ {message}", _Ansi.YELLOW), kwargs))

    def separator(self, title: str = "") -> None:
        rule = f"{'─' * 10} {title} {'─' * max(0, 50 - len(title))}" if title else "─" * 60
        self._logger.info(self._paint(rule, _Ansi.GRAY))

    def stats(self, **kwargs: Any) -> None:
        if kwargs:
            parts = " | ".join(f"{k}: {v}" for k, v in kwargs.items())
            self._logger.info("   " + self._paint(f"📈 {parts}", _Ansi.GRAY))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **kwargs: Any) -> Iterator[None]:
        """Log start and end of a step with its elapsed time; failures are logged and re-raised."""
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - start:.2f}s", error=e)
            raise
        self.step_complete(stage, f"{message} ({time.perf_counter() - start:.2f}s)")


def _format_kwargs(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())
