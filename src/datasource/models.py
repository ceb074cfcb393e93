"""Host-facing request/response models.

These mirror what the dashboard host sends (queries with a RefID, a time range
and a JSON query model) and what it renders (one frame per log line, marked
for the logs panel).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from cloudlogging.models import parse_rfc3339_datetime
from cloudlogging.query import resolve_filter_text

PreferredVisualization = Literal["logs"]
HealthStatus = Literal["ok", "error"]


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class QueryModel(_Model):
    """The JSON query model saved by the query editor."""

    query_text: str = Field(default="", alias="queryText")
    query: str = ""
    project_id: str = Field(default="", alias="projectId")
    bucket_id: str = Field(default="", alias="bucketId")
    view_id: str = Field(default="", alias="viewId")

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    @property
    def filter_text(self) -> str:
        return resolve_filter_text(self.query_text, self.query)


class DataQuery(_Model):
    """One query of a host data request."""

    ref_id: str
    model: dict[str, Any] = Field(default_factory=dict)
    max_data_points: int = 1000
    time_from: datetime
    time_to: datetime

    def parsed_model(self) -> QueryModel:
        """Validate the raw JSON query model (raises `pydantic.ValidationError`)."""
        return QueryModel.model_validate(self.model)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "DataQuery":
        """Parse `{refId, maxDataPoints, timeRange: {from, to}, ...model}` from the host."""
        time_range = payload.get("timeRange") or {}
        model = {k: v for k, v in payload.items() if k not in {"refId", "maxDataPoints", "timeRange"}}
        return cls(
            ref_id=str(payload.get("refId", "")),
            model=model,
            max_data_points=int(payload.get("maxDataPoints", 1000)),
            time_from=parse_rfc3339_datetime(time_range.get("from")),
            time_to=parse_rfc3339_datetime(time_range.get("to")),
        )


class FrameField(_Model):
    name: str
    values: list[Any]
    labels: dict[str, str] | None = None


class FrameMeta(_Model):
    preferred_visualization: PreferredVisualization = "logs"


class LogFrame(_Model):
    """One log line: a `time` field and a `content` field carrying the labels."""

    name: str
    fields: list[FrameField]
    meta: FrameMeta = Field(default_factory=FrameMeta)

    @property
    def content(self) -> FrameField:
        return next(f for f in self.fields if f.name == "content")


class DataResponse(_Model):
    frames: list[LogFrame] = Field(default_factory=list)
    error: str | None = None
    # Set when the entry stream stopped early; frames hold what was read before.
    warning: str | None = None


class HealthCheckResult(_Model):
    status: HealthStatus
    message: str


class ResourceResponse(_Model):
    status: int
    body: Any = None
