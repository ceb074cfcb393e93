"""Datasource handlers invoked by the dashboard host.

Responsibilities:
- run log queries and turn every entry into a log frame
- health-check connectivity with a single bounded query
- serve the project / bucket / view lists used by the query editor

Provider calls are blocking (`LoggingAPI` is synchronous); each runs in a
worker thread so the host's event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError

from cloudlogging.api import ListLogEntriesRequest, LoggingAPI
from cloudlogging.decoders import DEFAULT_REGISTRY, DecoderRegistry
from cloudlogging.errors import QueryScopeError
from cloudlogging.models import NormalizedEntry, Query
from cloudlogging.pagination import LogEntryPager
from cloudlogging.query import build_query, legacy_project_resource_name
from cloudlogging.resources import active_project_ids, bucket_ids, view_ids
from config import Config
from observability import DiagnosticsRecorder, DuckDBDiagnosticsSink, InMemoryDiagnosticsSink, QueryRecord
from observability.models import utc_now

from .models import (
    DataQuery,
    DataResponse,
    FrameField,
    FrameMeta,
    HealthCheckResult,
    LogFrame,
    ResourceResponse,
)

_NO_ENTRY = object()


def to_frame(unit: NormalizedEntry) -> LogFrame:
    """Render one normalized entry as a logs-panel frame named by its insert id."""
    return LogFrame(
        name=unit.insert_id,
        fields=[
            FrameField(name="time", values=[unit.timestamp]),
            FrameField(name="content", values=[unit.message], labels=unit.labels),
        ],
        meta=FrameMeta(preferred_visualization="logs"),
    )


class CloudLoggingDatasource:
    """One configured datasource instance bound to a `LoggingAPI` client."""

    def __init__(
        self,
        api: LoggingAPI,
        *,
        config: Config | None = None,
        recorder: DiagnosticsRecorder | None = None,
        registry: DecoderRegistry = DEFAULT_REGISTRY,
    ) -> None:
        """Create a datasource; `recorder` is optional (no diagnostics when None)."""
        self._api = api
        self._config = config or Config()
        self._recorder = recorder
        self._registry = registry

    @classmethod
    def from_config(cls, api: LoggingAPI, config: Config) -> "CloudLoggingDatasource":
        """Create a datasource with the diagnostics sink the config asks for."""
        recorder = None
        if config.datasource.record_diagnostics:
            if config.datasource.diagnostics_path:
                sink = DuckDBDiagnosticsSink(path=config.datasource.diagnostics_path)
            else:
                sink = InMemoryDiagnosticsSink()
            recorder = DiagnosticsRecorder(sink=sink)
        return cls(api, config=config, recorder=recorder)

    async def _record(self, record: QueryRecord) -> None:
        if self._recorder is not None:
            await self._recorder.record(record)

    async def query_data(self, queries: Iterable[DataQuery]) -> dict[str, DataResponse]:
        """Run each query on its own; one failing query does not affect the others."""
        responses: dict[str, DataResponse] = {}
        for query in queries:
            responses[query.ref_id] = await self._query(query)
        return responses

    def _logical_query(self, query: DataQuery) -> Query:
        model = query.parsed_model()
        return Query(
            project_id=model.project_id,
            bucket_id=model.bucket_id,
            view_id=model.view_id,
            filter=model.filter_text,
            limit=query.max_data_points,
            time_from=query.time_from,
            time_to=query.time_to,
        )

    def _read_entries(self, request: ListLogEntriesRequest, limit: int) -> tuple[list[NormalizedEntry], LogEntryPager]:
        """Blocking: open the cursor and drain it through a pager (worker thread)."""
        cursor = self._api.list_log_entries(request)
        if cursor is None:
            raise RuntimeError("nil response")
        pager = LogEntryPager(cursor, limit, config=self._config.normalization, registry=self._registry)
        return list(pager), pager

    async def _query(self, query: DataQuery) -> DataResponse:
        started_at = utc_now()
        start = time.monotonic()

        try:
            logical = self._logical_query(query)
            request = build_query(logical, self._config.normalization.max_page_size)
        except (ValidationError, QueryScopeError) as exc:
            logger.warning("Rejected query {}: {}", query.ref_id, exc)
            await self._record(
                QueryRecord(kind="query", ref_id=query.ref_id, outcome="error", error=str(exc), started_at=started_at)
            )
            return DataResponse(error=f"invalid query: {exc}")

        record = {
            "kind": "query",
            "ref_id": query.ref_id,
            "resource_name": request.resource_names[0],
            "filter": request.filter,
            "page_size": request.page_size,
            "started_at": started_at,
        }
        try:
            units, pager = await asyncio.to_thread(self._read_entries, request, logical.limit)
        except Exception as exc:  # noqa: BLE001 - report provider failures on this query only
            logger.error("Query {} failed: {}", query.ref_id, exc)
            await self._record(
                QueryRecord(**record, outcome="error", error=str(exc), duration_ms=_elapsed_ms(start))
            )
            return DataResponse(error=f"query: {exc}")

        logger.debug("Finished listing logs for {} ({} entries)", query.ref_id, len(units))
        await self._record(
            QueryRecord(
                **record,
                outcome="stopped_early" if pager.stopped_early else "ok",
                entries=len(units),
                message_failures=pager.stats.message_failures,
                error=str(pager.error) if pager.error else None,
                duration_ms=_elapsed_ms(start),
            )
        )
        return DataResponse(
            frames=[to_frame(unit) for unit in units],
            warning=str(pager.error) if pager.error else None,
        )

    def _first_entry(self, request: ListLogEntriesRequest) -> Any:
        """Blocking: pull at most one entry (`_NO_ENTRY` when the stream is empty)."""
        return next(iter(self._api.list_log_entries(request)), _NO_ENTRY)

    async def check_health(self, default_project: str | None = None) -> HealthCheckResult:
        """Query any log from the default project within the configured timeout."""
        project = default_project or self._config.datasource.default_project
        if not project:
            return HealthCheckResult(status="error", message="failed to run test query: no default project configured")

        request = ListLogEntriesRequest(resource_names=(legacy_project_resource_name(project),), page_size=1)
        started_at = utc_now()
        start = time.monotonic()
        timeout = self._config.datasource.health_check_timeout_s

        reason: str | None = None
        try:
            entry = await asyncio.wait_for(asyncio.to_thread(self._first_entry, request), timeout=timeout)
        except TimeoutError:
            reason = "list entries: timeout"
        except Exception as exc:  # noqa: BLE001 - any provider failure fails the check
            reason = f"list entries: {exc}"
        else:
            if entry is _NO_ENTRY or entry is None:
                reason = "no entries"
        logger.debug("Finished testConnection in {:.1f}ms", _elapsed_ms(start))

        await self._record(
            QueryRecord(
                kind="health_check",
                ref_id=project,
                resource_name=request.resource_names[0],
                page_size=1,
                outcome="error" if reason else "ok",
                entries=0 if reason else 1,
                error=reason,
                started_at=started_at,
                duration_ms=_elapsed_ms(start),
            )
        )
        if reason is not None:
            return HealthCheckResult(status="error", message=f"failed to run test query: {reason}")
        return HealthCheckResult(status="ok", message=f"Successfully queried logs from GCP project {project}")

    async def call_resource(self, path: str, params: Mapping[str, str] | None = None) -> ResourceResponse:
        """Serve `projects`, `logBuckets` and `logViews`; anything else is a 404."""
        params = params or {}
        resource = path.strip("/").lower()

        listing: Callable[[], list[str]]
        if resource == "projects":
            listing = lambda: active_project_ids(self._api.list_projects())  # noqa: E731
        elif resource == "logbuckets":
            listing = lambda: bucket_ids(self._api.list_buckets(params.get("ProjectId", "")))  # noqa: E731
        elif resource == "logviews":
            listing = lambda: view_ids(  # noqa: E731
                self._api.list_views(params.get("ProjectId", ""), params.get("BucketId", ""))
            )
        else:
            return ResourceResponse(status=404, body="No such path")

        try:
            body = await asyncio.to_thread(listing)
        except Exception as exc:  # noqa: BLE001 - the editor shows an empty list instead
            logger.warning("Problem listing {}: {}", resource, exc)
            body = []
        return ResourceResponse(status=200, body=body)

    async def dispose(self) -> None:
        """Close the API client and flush diagnostics. Safe to call multiple times."""
        try:
            await asyncio.to_thread(self._api.close)
        except Exception as exc:  # noqa: BLE001 - disposal must finish
            logger.error("Failed closing client: {}", exc)
        if self._recorder is not None:
            await self._recorder.aclose()


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000.0
