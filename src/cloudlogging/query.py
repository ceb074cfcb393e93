"""Translate a logical query into a provider ListLogEntries request."""

from __future__ import annotations

from datetime import datetime, timezone

from config import PROVIDER_MAX_PAGE_SIZE

from .api import ListLogEntriesRequest
from .errors import QueryScopeError
from .models import Query

ORDER_BY = "timestamp desc"
DEFAULT_VIEW = "_AllLogs"

# Display label names that correspond to a differently named filter field.
_LABEL_FILTER_FIELDS = {"id": "insertId", "level": "severity"}


def format_timestamp(value: datetime) -> str:
    """Render an instant as UTC RFC3339 with second precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def legacy_project_resource_name(project_id: str) -> str:
    return f"projects/{project_id}"


def view_resource_name(project_id: str, bucket_id: str, view_id: str = "") -> str:
    """Scope a query to a bucket view (the bucket's `_AllLogs` view by default)."""
    return f"projects/{project_id}/locations/{bucket_id}/views/{view_id or DEFAULT_VIEW}"


def resource_scope(query: Query) -> str:
    if not query.bucket_id:
        return legacy_project_resource_name(query.project_id)
    return view_resource_name(query.project_id, query.bucket_id, query.view_id)


def filter_string(query: Query) -> str:
    """The query text with the time range constraints appended."""
    return (
        f'{query.filter} AND timestamp >= "{format_timestamp(query.time_from)}"'
        f' AND timestamp <= "{format_timestamp(query.time_to)}"'
    )


def validate_query(query: Query) -> None:
    """Reject queries the provider would refuse or misread.

    Raises:
    - `QueryScopeError` describing the first problem found
    """
    if not query.project_id.strip():
        raise QueryScopeError("query has no project id")
    if query.view_id and not query.bucket_id:
        raise QueryScopeError(f"view {query.view_id!r} given without a log bucket")
    if query.limit <= 0:
        raise QueryScopeError(f"limit must be > 0. Got: {query.limit}")
    if query.time_from > query.time_to:
        raise QueryScopeError(
            f"time range starts after it ends: {format_timestamp(query.time_from)} > {format_timestamp(query.time_to)}"
        )


def build_query(query: Query, max_page_size: int = PROVIDER_MAX_PAGE_SIZE) -> ListLogEntriesRequest:
    """Build the provider request for a logical query (validated first)."""
    validate_query(query)
    return ListLogEntriesRequest(
        resource_names=(resource_scope(query),),
        filter=filter_string(query),
        order_by=ORDER_BY,
        page_size=min(query.limit, max_page_size, PROVIDER_MAX_PAGE_SIZE),
    )


def resolve_filter_text(query_text: str | None, query: str | None) -> str:
    """Pick the filter from a host query model (`queryText` wins over `query`)."""
    if query_text:
        return query_text
    return query or ""


def escape_filter_value(value: str) -> str:
    """Escape backslashes, newlines and double quotes for a quoted filter value."""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def add_label_filter(filter_text: str, key: str, value: str, *, negate: bool = False) -> str:
    """Append a `key="value"` restriction for a label picked in the log panel.

    The `id` and `level` labels filter on `insertId` and `severity`.
    """
    if not key or not value:
        return filter_text
    field = _LABEL_FILTER_FIELDS.get(key, key)
    op = "!=" if negate else "="
    return f'{filter_text}\n{field}{op}"{escape_filter_value(value)}"'
