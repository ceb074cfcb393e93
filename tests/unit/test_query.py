from datetime import datetime, timedelta, timezone

import pytest

from cloudlogging.errors import QueryScopeError
from cloudlogging.models import Query
from cloudlogging.query import (
    ORDER_BY,
    add_label_filter,
    build_query,
    escape_filter_value,
    format_timestamp,
    resolve_filter_text,
)


def _query(hour_range, **overrides) -> Query:
    time_from, time_to = hour_range
    fields = {
        "project_id": "my-project",
        "filter": 'resource.type="gce_instance"',
        "limit": 20,
        "time_from": time_from,
        "time_to": time_to,
    }
    fields.update(overrides)
    return Query(**fields)


def test_project_scope_query(hour_range):
    request = build_query(_query(hour_range))

    assert request.resource_names == ("projects/my-project",)
    assert request.filter == (
        'resource.type="gce_instance" AND timestamp >= "2024-05-01T10:00:00Z" AND timestamp <= "2024-05-01T11:00:00Z"'
    )
    assert request.order_by == ORDER_BY == "timestamp desc"
    assert request.page_size == 20


def test_bucket_scope_defaults_to_the_all_logs_view(hour_range):
    request = build_query(_query(hour_range, bucket_id="global/buckets/audit"))

    assert request.resource_names == ("projects/my-project/locations/global/buckets/audit/views/_AllLogs",)


def test_bucket_and_view_scope(hour_range):
    request = build_query(_query(hour_range, bucket_id="global/buckets/audit", view_id="errors"))

    assert request.resource_names == ("projects/my-project/locations/global/buckets/audit/views/errors",)


def test_empty_filter_still_gets_the_time_range(hour_range):
    request = build_query(_query(hour_range, filter=""))

    assert request.filter == ' AND timestamp >= "2024-05-01T10:00:00Z" AND timestamp <= "2024-05-01T11:00:00Z"'


@pytest.mark.parametrize(
    "limit, max_page_size, expected",
    [
        (20, 1000, 20),
        (5000, 1000, 1000),
        (5000, 100, 100),
        (1, 1000, 1),
    ],
)
def test_page_size_is_bounded(hour_range, limit: int, max_page_size: int, expected: int):
    assert build_query(_query(hour_range, limit=limit), max_page_size).page_size == expected


@pytest.mark.parametrize(
    "overrides, match",
    [
        ({"project_id": ""}, "no project id"),
        ({"project_id": "  "}, "no project id"),
        ({"view_id": "errors"}, "without a log bucket"),
        ({"limit": 0}, "limit must be > 0"),
        ({"limit": -5}, "limit must be > 0"),
    ],
)
def test_invalid_queries_are_rejected(hour_range, overrides: dict, match: str):
    with pytest.raises(QueryScopeError, match=match):
        build_query(_query(hour_range, **overrides))


def test_reversed_time_range_is_rejected(hour_range):
    time_from, time_to = hour_range

    with pytest.raises(QueryScopeError, match="starts after it ends"):
        build_query(_query(hour_range, time_from=time_to, time_to=time_from))


def test_scope_errors_are_value_errors(hour_range):
    with pytest.raises(ValueError):
        build_query(_query(hour_range, project_id=""))


def test_format_timestamp_converts_to_utc_and_drops_fractions():
    plus_two = timezone(timedelta(hours=2))

    assert format_timestamp(datetime(2024, 5, 1, 12, 0, 0, 999_999, tzinfo=plus_two)) == "2024-05-01T10:00:00Z"
    assert format_timestamp(datetime(2024, 5, 1, 12, 0, 0)) == "2024-05-01T12:00:00Z"


def test_resolve_filter_text_prefers_query_text():
    assert resolve_filter_text("severity>=ERROR", "old") == "severity>=ERROR"
    assert resolve_filter_text("", "old") == "old"
    assert resolve_filter_text(None, None) == ""


def test_escape_filter_value():
    assert escape_filter_value('say "hi"\\now\nnext') == 'say \\"hi\\"\\\\now\\nnext'


def test_add_label_filter_maps_display_labels_to_filter_fields():
    assert add_label_filter("", "level", "error") == '\nseverity="error"'
    assert add_label_filter("x", "id", "abc") == 'x\ninsertId="abc"'
    assert add_label_filter("x", "resource.type", "gce_instance", negate=True) == 'x\nresource.type!="gce_instance"'


def test_add_label_filter_ignores_empty_key_or_value():
    assert add_label_filter("x", "", "v") == "x"
    assert add_label_filter("x", "k", "") == "x"
