"""Diagnostics record models.

One record is written per executed query or health check, so slow scopes,
early stream stops and entries without payloads can be found after the fact.
Records hold the request and counters, never the log content itself.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


RecordKind = Literal["query", "health_check"]
Outcome = Literal["ok", "stopped_early", "error"]


class QueryRecord(BaseModel):
    """A durable, structured record of one datasource operation."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: RecordKind

    # Host-side identifier of the query (RefID), or the project of a health check.
    ref_id: str = ""

    # What was sent to the provider.
    resource_name: str = ""
    filter: str = ""
    page_size: int = 0

    # What came back.
    outcome: Outcome = "ok"
    entries: int = 0
    message_failures: int = 0
    error: str | None = None

    # Timing fields.
    started_at: datetime
    duration_ms: float = 0.0
    logged_at: datetime = Field(default_factory=utc_now)
