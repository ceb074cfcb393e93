"""Logging API interface.

The datasource depends on this small interface so the transport (gRPC, REST,
a recorded fixture) can be swapped without touching normalization code. The
implementation owns connection setup, credentials and retries.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .models import LogEntry


@dataclass(frozen=True)
class ListLogEntriesRequest:
    """Parameters of one ListLogEntries call."""

    resource_names: tuple[str, ...]
    filter: str = ""
    order_by: str = "timestamp desc"
    page_size: int = 1000


class LoggingAPI(Protocol):
    def list_log_entries(self, request: ListLogEntriesRequest) -> Iterator[LogEntry | Mapping[str, Any]]:
        """Return a cursor over matching entries, fetching pages lazily.

        The cursor raises `StopIteration` when exhausted and any other exception
        on a transport or decoding failure.
        """

    def list_projects(self) -> Iterable[Mapping[str, Any]]:
        """Return visible projects as `{"projectId", "lifecycleState"}` mappings."""

    def list_buckets(self, project_id: str) -> Iterable[str]:
        """Return full log bucket resource names of a project (all locations)."""

    def list_views(self, project_id: str, bucket_id: str) -> Iterable[str]:
        """Return full view resource names of a bucket (`<location>/buckets/<id>`)."""

    def close(self) -> None:
        """Release the underlying connection."""
