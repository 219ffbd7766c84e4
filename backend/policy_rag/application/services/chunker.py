"""Chunker — splits policy markdown documents into retrieval-sized chunks.

Three source layouts are recognised by document name:

1. ``FAQ.md``       — pipe-delimited Q/A table (two row shapes plus a short form)
2. ``FAQ_*.md``     — ``### Q.`` / ``A.`` heading-delimited Q&A markdown
3. anything else    — free-form prose split on ``#``–``###`` headings, with
                      overlapping fixed-size windows for long sections

Every chunk inherits category, priority and default target from the
file catalog. Unknown files fall back to ``reference`` / 2 / ``common``.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from policy_rag.domain.entities import (
    ChunkCategory,
    ChunkContentType,
    ChunkTarget,
    DocumentChunk,
    FileCategory,
)
from policy_rag.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ── Defaults ────────────────────────────────────────────────────────
_DEFAULT_MAX_CHARS = 1500
_DEFAULT_OVERLAP = 200

_PIPE_TABLE_FILE = "FAQ.md"
_HEADING_FAQ_PREFIX = "FAQ_"
_HEADING_FAQ_DEFAULT_SECTION = "FAQ"
_ANSWER_MARKER = "ㄴ"

_FALLBACK_CATEGORY = FileCategory(ChunkCategory.REFERENCE, 2, ChunkTarget.COMMON)

DEFAULT_FILE_CATALOG: Mapping[str, FileCategory] = MappingProxyType({
    # FAQ, highest priority
    "FAQ.md": FileCategory(ChunkCategory.FAQ, 0, ChunkTarget.COMMON),
    "FAQ_공통.md": FileCategory(ChunkCategory.FAQ, 0, ChunkTarget.COMMON),
    "FAQ_호스트.md": FileCategory(ChunkCategory.FAQ, 0, ChunkTarget.HOST),
    "FAQ_게스트.md": FileCategory(ChunkCategory.FAQ, 0, ChunkTarget.GUEST),
    # Operations
    "운영-1_매물검수.md": FileCategory(ChunkCategory.OPERATION, 0),
    "운영-2_호스트게스트관리.md": FileCategory(ChunkCategory.OPERATION, 1),
    "H1.md": FileCategory(ChunkCategory.OPERATION, 1),
    # Policies
    "정책-1_법적기준.md": FileCategory(ChunkCategory.POLICY, 0),
    "정책-2_가격정책.md": FileCategory(ChunkCategory.POLICY, 0),
    "정책-3_기타정책.md": FileCategory(ChunkCategory.POLICY, 0),
    # Reference material (competitors, notes)
    "Note.md": FileCategory(ChunkCategory.REFERENCE, 2),
    "FAQ-타사.md": FileCategory(ChunkCategory.REFERENCE, 2),
    "정책-타사A.md": FileCategory(ChunkCategory.REFERENCE, 2),
})

_HEADER_RE = re.compile(r"^(#{1,3})\s+(.+)")
_FAQ_QUESTION_RE = re.compile(r"^###\s+Q\.\s*(.+)")
_FAQ_CATEGORY_RE = re.compile(r"^\*분류:\s*\[(.+?)\]")
_FAQ_ANSWER_RE = re.compile(r"^A\.\s*(.*)")


@dataclass(frozen=True)
class ChunkOptions:
    max_chars: int = _DEFAULT_MAX_CHARS
    overlap: int = _DEFAULT_OVERLAP


def parse_target(raw: str) -> ChunkTarget:
    """Map a free-text audience label to a ChunkTarget."""
    lower = raw.strip().lower()
    if "호스트" in lower or "host" in lower:
        return ChunkTarget.HOST
    if "게스트" in lower or "guest" in lower:
        return ChunkTarget.GUEST
    return ChunkTarget.COMMON


# ── Pipe-table states ───────────────────────────────────────────────

@dataclass(frozen=True)
class _Idle:
    pass


@dataclass(frozen=True)
class _AwaitingAnswer:
    question: str
    section: str
    target: ChunkTarget


_IDLE = _Idle()


class Chunker:
    """Deterministic document → chunk splitter driven by a file catalog."""

    def __init__(self, catalog: Mapping[str, FileCategory] | None = None):
        self._catalog = MappingProxyType(dict(catalog if catalog is not None else DEFAULT_FILE_CATALOG))

    def category_for(self, document_name: str) -> FileCategory:
        return self._catalog.get(document_name, _FALLBACK_CATEGORY)

    def chunk(
        self,
        document_text: str,
        document_name: str,
        options: ChunkOptions | None = None,
    ) -> list[DocumentChunk]:
        """Split one document into chunks.

        Raises:
            ValidationError: If the name is empty or the options are invalid.
        """
        options = options or ChunkOptions()
        if not document_name or not document_name.strip():
            raise ValidationError("document name must not be empty")
        if options.max_chars <= 0:
            raise ValidationError("max_chars must be positive")
        if options.overlap < 0:
            raise ValidationError("overlap must not be negative")

        meta = self.category_for(document_name)

        if document_name == _PIPE_TABLE_FILE:
            return self._chunk_pipe_table(document_text, document_name, meta)
        if document_name.startswith(_HEADING_FAQ_PREFIX):
            return self._chunk_heading_faq(document_text, document_name, meta)
        return self._chunk_by_headers(document_text, document_name, meta, options)

    # ── Pipe-delimited FAQ table ────────────────────────────────────

    def _chunk_pipe_table(
        self, text: str, name: str, meta: FileCategory
    ) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        state: _Idle | _AwaitingAnswer = _IDLE

        for line in text.split("\n"):
            if not line.strip():
                continue
            parts = [p.strip() for p in line.split("|")]

            # usage | done | section | target | type | text...
            if len(parts) >= 6:
                usage, _, section, target_raw, row_type, *rest = parts
                body = "|".join(rest).strip()
                if usage not in ("O", "") or not body:
                    continue

                if row_type == "Q":
                    state = _AwaitingAnswer(body, section, parse_target(target_raw))
                elif row_type == "A" and isinstance(state, _AwaitingAnswer):
                    answer = body[1:].strip() if body.startswith(_ANSWER_MARKER) else body
                    chunks.append(
                        self._qa_chunk(state.question, answer, name, meta, state.section, state.target)
                    )
                    state = _IDLE
                continue

            # section | subsection | target | question | answer...
            if len(parts) >= 5:
                section, subsection, target_raw, question, *rest = parts
                answer = "|".join(rest).strip()
                if not question or not answer:
                    continue
                title = f"{section} > {subsection}" if subsection else section
                chunks.append(
                    self._qa_chunk(question, answer, name, meta, title, parse_target(target_raw))
                )
                continue

            # section | target | question | answer
            if len(parts) == 4:
                section, target_raw, question, answer = parts
                if not question or not answer:
                    continue
                chunks.append(
                    self._qa_chunk(question, answer, name, meta, section, parse_target(target_raw))
                )

        if isinstance(state, _AwaitingAnswer):
            logger.info(
                "Dropping unanswered question at end of %s: %.40s", name, state.question
            )

        return chunks

    @staticmethod
    def _qa_chunk(
        question: str,
        answer: str,
        name: str,
        meta: FileCategory,
        section_title: str,
        target: ChunkTarget,
    ) -> DocumentChunk:
        return DocumentChunk(
            content=f"Q: {question}\nA: {answer}",
            source_file=name,
            category=meta.category,
            target=target,
            section_title=section_title,
            priority=meta.priority,
            content_type=ChunkContentType.QA_PAIR,
        )

    # ── Heading Q&A markdown (### Q. / A.) ──────────────────────────

    def _chunk_heading_faq(
        self, text: str, name: str, meta: FileCategory
    ) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        question: str | None = None
        section = ""
        answer_lines: list[str] = []
        in_answer = False

        def flush() -> None:
            answer = "\n".join(answer_lines).strip()
            if question and answer:
                chunks.append(
                    self._qa_chunk(
                        question,
                        answer,
                        name,
                        meta,
                        section or _HEADING_FAQ_DEFAULT_SECTION,
                        meta.target,
                    )
                )

        for line in text.split("\n"):
            q_match = _FAQ_QUESTION_RE.match(line)
            if q_match:
                flush()
                question = q_match.group(1).strip()
                section = ""
                answer_lines = []
                in_answer = False
                continue

            cat_match = _FAQ_CATEGORY_RE.match(line)
            if cat_match and question:
                section = cat_match.group(1).strip()
                continue

            a_match = _FAQ_ANSWER_RE.match(line)
            if a_match and question:
                in_answer = True
                if a_match.group(1).strip():
                    answer_lines.append(a_match.group(1).strip())
                continue

            if in_answer and line.strip():
                answer_lines.append(line.strip())

        flush()
        return chunks

    # ── Heading-delimited prose ─────────────────────────────────────

    def _chunk_by_headers(
        self,
        text: str,
        name: str,
        meta: FileCategory,
        options: ChunkOptions,
    ) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        section = name.replace(".md", "", 1)
        buffer: list[str] = []

        for line in text.split("\n"):
            header = _HEADER_RE.match(line)
            if header:
                self._emit_section("".join(buffer), name, meta, section, options, chunks)
                section = header.group(2).strip()
                buffer = []
                continue
            buffer.append(line + "\n")

        self._emit_section("".join(buffer), name, meta, section, options, chunks)
        return chunks

    def _emit_section(
        self,
        raw: str,
        name: str,
        meta: FileCategory,
        section_title: str,
        options: ChunkOptions,
        chunks: list[DocumentChunk],
    ) -> None:
        body = raw.strip()
        if not body:
            return
        for window in split_windows(body, options.max_chars, options.overlap):
            if not window.strip():
                continue
            chunks.append(
                DocumentChunk(
                    content=window,
                    source_file=name,
                    category=meta.category,
                    target=meta.target,
                    section_title=section_title,
                    priority=meta.priority,
                    content_type=ChunkContentType.POLICY_RULE,
                )
            )


def split_windows(text: str, max_chars: int, overlap: int) -> list[str]:
    """Slice text into windows of ``max_chars`` sharing ``overlap`` characters.

    Text no longer than ``max_chars`` is returned whole. Slicing stops once a
    window reaches the end, or when the next start would not advance
    (``overlap >= max_chars``).
    """
    if len(text) <= max_chars:
        return [text]

    windows: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + max_chars, len(text))
        windows.append(text[start:end])
        if end == len(text):
            break
        next_start = end - overlap
        if next_start <= start:
            break
        start = next_start
    return windows
