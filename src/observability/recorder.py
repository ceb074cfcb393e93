"""Background writer for query diagnostics.

Datasource handlers call `record()` from the event loop; a single task drains
the queue and hands records to the (blocking) sink on a worker thread.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime
from typing import Any

from loguru import logger

from .models import QueryRecord, utc_now
from .sinks import DiagnosticsSink


class DiagnosticsRecorder:
    """Queues `QueryRecord`s and persists them without holding up queries."""

    def __init__(self, *, sink: DiagnosticsSink, max_queue_size: int = 10000) -> None:
        """Create a recorder.

        Args:
            sink: Storage backend written from a worker thread.
            max_queue_size: Records beyond this many pending ones are dropped.
        """
        self._sink = sink
        self._pending: asyncio.Queue[QueryRecord | None] = asyncio.Queue(maxsize=max_queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closed = False

        self._outcomes: Counter[str] = Counter()
        self._dropped = 0
        self._write_failures = 0
        self._first_failure_at: datetime | None = None
        self._last_failure_at: datetime | None = None

    def _mark_failure(self, *, dropped: bool) -> None:
        if dropped:
            self._dropped += 1
        else:
            self._write_failures += 1
        now = utc_now()
        if self._first_failure_at is None:
            self._first_failure_at = now
        self._last_failure_at = now

    async def record(self, record: QueryRecord) -> None:
        """Queue a record for writing; never blocks (drops when the queue is full)."""
        if self._closed:
            return
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain(), name="diagnostics-writer")

        self._outcomes[f"{record.kind}:{record.outcome}"] += 1
        try:
            self._pending.put_nowait(record)
        except asyncio.QueueFull:
            logger.debug("Diagnostics queue full, dropping record for {}", record.ref_id)
            self._mark_failure(dropped=True)

    async def _drain(self) -> None:
        while (record := await self._pending.get()) is not None:
            try:
                await asyncio.to_thread(self._sink.write, record)
            except Exception as exc:  # noqa: BLE001 - diagnostics must not fail queries
                logger.warning("Failed writing diagnostics record for {}: {}", record.ref_id, exc)
                self._mark_failure(dropped=False)

    async def aclose(self) -> None:
        """Write what is queued, then close the sink. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._writer is not None:
            await self._pending.put(None)
            await self._writer
        await asyncio.to_thread(self._sink.close)

    def outcome_counts(self) -> dict[str, int]:
        """Recorded operations by `<kind>:<outcome>` (dropped records included)."""
        return dict(self._outcomes)

    def degraded_status(self) -> dict[str, Any]:
        return {
            "dropped": self._dropped,
            "write_failures": self._write_failures,
            "first_failure_at": self._first_failure_at,
            "last_failure_at": self._last_failure_at,
        }
