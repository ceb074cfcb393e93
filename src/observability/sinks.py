"""Diagnostics sinks (storage backends)."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import duckdb

from .models import QueryRecord

_COLUMNS = (
    "logged_at",
    "started_at",
    "kind",
    "ref_id",
    "resource_name",
    "filter",
    "page_size",
    "outcome",
    "entries",
    "message_failures",
    "error",
    "duration_ms",
)


class DiagnosticsSink(Protocol):
    """A synchronous sink for diagnostics records.

    The recorder calls sinks from a worker thread, so they may block.
    """

    def write(self, record: QueryRecord) -> None:
        """Persist a single record."""

    def close(self) -> None:
        """Close any underlying resources."""


class InMemoryDiagnosticsSink:
    """In-memory sink for tests and local debugging."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[QueryRecord] = []

    def write(self, record: QueryRecord) -> None:
        """Append a record (thread-safe)."""
        with self._lock:
            self._records.append(record)

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def snapshot(self) -> Sequence[QueryRecord]:
        """Return a point-in-time copy of all recorded entries."""
        with self._lock:
            return list(self._records)


class DuckDBDiagnosticsSink:
    """DuckDB sink for durable local persistence of query diagnostics."""

    def __init__(self, *, path: str | Path, table: str = "query_diagnostics") -> None:
        """Create (or open) a DuckDB-backed sink at the given path."""
        if not table.isidentifier():
            raise ValueError(f"table must be a plain identifier. Got: {table!r}")
        self._path = Path(path)
        self._table = table
        self._lock = threading.Lock()
        self._conn = duckdb.connect(str(self._path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        create_sql = f"""
        create table if not exists {self._table} (
          logged_at timestamptz not null,
          started_at timestamptz not null,
          kind varchar not null,
          ref_id varchar not null,
          resource_name varchar not null,
          filter varchar not null,
          page_size integer not null,
          outcome varchar not null,
          entries integer not null,
          message_failures integer not null,
          error varchar,
          duration_ms double not null
        )
        """
        with self._lock:
            self._conn.execute(create_sql)

    def write(self, record: QueryRecord) -> None:
        """Insert a single record."""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        insert_sql = f"insert into {self._table} ({', '.join(_COLUMNS)}) values ({placeholders})"
        with self._lock:
            self._conn.execute(insert_sql, [getattr(record, column) for column in _COLUMNS])

    def count(self, *, outcome: str | None = None) -> int:
        """Number of stored records, optionally only those with `outcome`."""
        sql = f"select count(*) from {self._table}"
        params: list[str] = []
        if outcome is not None:
            sql += " where outcome = ?"
            params.append(outcome)
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return int(row[0]) if row else 0

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()
