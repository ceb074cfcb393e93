from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest


@pytest.fixture
def rest_entry():
    """Build a REST-shaped log entry dict (`insertId` + `timestamp` filled in)."""

    def _make(insert_id: str = "insert-id", **members: Any) -> dict[str, Any]:
        entry: dict[str, Any] = {"insertId": insert_id, "timestamp": "2024-05-01T10:00:00Z"}
        entry.update(members)
        return entry

    return _make


@pytest.fixture
def hour_range() -> tuple[datetime, datetime]:
    """A one-hour UTC query window."""
    return (
        datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc),
        datetime(2024, 5, 1, 11, 0, 0, tzinfo=timezone.utc),
    )
