"""Unit tests for PgChunkRepository query building and failure handling."""

import re

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from policy_rag.domain.exceptions import IndexQueryError
from policy_rag.infrastructure.database.repositories import PgChunkRepository


# ── Fakes ────────────────────────────────────────────────────────────


class FakeSavepoint:
    def __init__(self, events: list[str]):
        self._events = events

    async def __aenter__(self):
        self._events.append("savepoint")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._events.append("rollback to savepoint" if exc_type else "release savepoint")
        return False


class FailingSession:
    def __init__(self):
        self.events: list[str] = []

    def begin_nested(self):
        return FakeSavepoint(self.events)

    async def execute(self, statement):
        self.events.append("execute")
        raise OperationalError("SELECT", {}, Exception("operator does not exist: vector <=> vector"))


def _compile(**kwargs) -> tuple[str, dict]:
    query = PgChunkRepository.build_match_query([0.1] * 1536, **kwargs)
    compiled = query.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


def _param(sql: str, params: dict, pattern: str):
    name = re.search(pattern + r" %\((\w+)\)s", sql).group(1)
    return params[name]


# ── Query building ──


def test_match_query_filters_priority_and_category_and_limits():
    sql, params = _compile(match_count=3, category="faq", max_priority=0)

    assert "policy_chunks.embedding <=> " in sql
    assert _param(sql, params, r"policy_chunks\.priority <=") == 0
    assert _param(sql, params, r"policy_chunks\.category =") == "faq"
    assert "ORDER BY similarity DESC" in sql
    assert _param(sql, params, "LIMIT") == 3


def test_match_query_without_category_has_no_category_filter():
    sql, params = _compile(match_count=5)

    assert "policy_chunks.category =" not in sql
    assert _param(sql, params, r"policy_chunks\.priority <=") == 2
    assert _param(sql, params, "LIMIT") == 5


# ── Failure handling ──


async def test_failed_query_runs_inside_savepoint_and_raises_index_error():
    session = FailingSession()

    with pytest.raises(IndexQueryError, match="similarity query failed"):
        await PgChunkRepository(session).match_chunks([0.1] * 1536, match_count=5)

    assert session.events == ["savepoint", "execute", "rollback to savepoint"]
