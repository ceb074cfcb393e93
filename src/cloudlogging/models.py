"""Cloud Logging data models used by the normalization core.

These models are a small, purpose-built subset of the provider's `LogEntry`
resource. `LogEntry.from_api` accepts the REST (camelCase JSON) shape, which is
also what `gcloud logging read --format=json` exports.
"""

from __future__ import annotations

import base64
import re
from datetime import datetime, timezone
from enum import IntEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# JSON-shaped value tree: null, bool, number, string, object, array.
StructuredValue = Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_FRACTION_RE = re.compile(r"\.(\d+)")


class LogSeverity(IntEnum):
    """Provider severity enumeration (values match the wire numbers)."""

    DEFAULT = 0
    DEBUG = 100
    INFO = 200
    NOTICE = 300
    WARNING = 400
    ERROR = 500
    CRITICAL = 600
    ALERT = 700
    EMERGENCY = 800


def parse_rfc3339_datetime(value: Any) -> datetime | None:
    """Parse an RFC3339 timestamp into an aware datetime (UTC if tz missing)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value)
        # The provider emits nanosecond precision: "2024-05-01T10:00:00.123456789Z".
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        raw = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _severity_from_wire(value: Any) -> LogSeverity | str:
    """Map a wire severity (name or number) onto `LogSeverity` when known."""
    if value is None or value == "":
        return LogSeverity.DEFAULT
    if isinstance(value, LogSeverity):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return LogSeverity(value)
        except ValueError:
            return str(value)
    name = str(value).strip().upper()
    if name in LogSeverity.__members__:
        return LogSeverity[name]
    return name


class _Model(BaseModel):
    # Provider payloads contain many more fields than we normalize.
    model_config = ConfigDict(extra="ignore", frozen=True)


class NoPayload(_Model):
    kind: Literal["none"] = "none"


class TextPayload(_Model):
    kind: Literal["text"] = "text"
    text: str


class JsonPayload(_Model):
    kind: Literal["json"] = "json"
    fields: dict[str, StructuredValue] = Field(default_factory=dict)


class ProtoPayload(_Model):
    """An opaque typed payload (`google.protobuf.Any`).

    `value` carries the serialized message. When the provider already rendered
    the message as JSON (the REST shape), the rendering is kept in `fields`.
    """

    kind: Literal["proto"] = "proto"
    type_url: str
    value: bytes = b""
    fields: dict[str, StructuredValue] | None = None


Payload = Annotated[Union[NoPayload, TextPayload, JsonPayload, ProtoPayload], Field(discriminator="kind")]

_PAYLOAD_KEYS = ("textPayload", "jsonPayload", "protoPayload")


def _payload_from_api(key: str, raw: Any) -> dict[str, Any]:
    """Convert one REST payload member into the tagged payload shape."""
    if key == "textPayload":
        return {"kind": "text", "text": raw}
    if key == "jsonPayload":
        return {"kind": "json", "fields": raw}

    body = dict(raw)
    type_url = str(body.pop("@type", ""))
    if set(body) == {"value"} and isinstance(body["value"], str):
        # Any with an unknown type: the JSON form is {"@type": ..., "value": base64}.
        return {"kind": "proto", "type_url": type_url, "value": base64.b64decode(body["value"])}
    return {"kind": "proto", "type_url": type_url, "fields": body}


class MonitoredResource(_Model):
    type: str = ""
    labels: dict[str, str] = Field(default_factory=dict)


class LogEntry(_Model):
    """Subset of provider log entry fields used for display normalization."""

    insert_id: str = ""
    timestamp: datetime = _EPOCH
    severity: LogSeverity | str = LogSeverity.DEFAULT
    labels: dict[str, str] = Field(default_factory=dict)
    resource: MonitoredResource = Field(default_factory=MonitoredResource)
    payload: Payload = Field(default_factory=NoPayload)
    trace: str = ""
    span_id: str = ""
    http_request: dict[str, StructuredValue] | None = None

    @model_validator(mode="before")
    @classmethod
    def _populate_from_rest_shape(cls, data: Any) -> Any:
        """Map camelCase REST members onto our field names."""
        if not isinstance(data, dict):
            return data
        present = [key for key in _PAYLOAD_KEYS if data.get(key) is not None]
        if len(present) > 1:
            raise ValueError(f"log entry has more than one payload: {', '.join(present)}")

        data = dict(data)
        for camel, snake in (("insertId", "insert_id"), ("spanId", "span_id"), ("httpRequest", "http_request")):
            if camel in data and snake not in data:
                data[snake] = data.pop(camel)
        if present and "payload" not in data:
            key = present[0]
            data["payload"] = _payload_from_api(key, data.pop(key))
        for key in _PAYLOAD_KEYS:
            data.pop(key, None)
        return data

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> datetime:
        """Coerce `timestamp` into an aware UTC datetime (epoch when absent)."""
        return parse_rfc3339_datetime(v) or _EPOCH

    @field_validator("severity", mode="before")
    @classmethod
    def _coerce_severity(cls, v: Any) -> LogSeverity | str:
        """Accept severity names or numbers; unknown values keep their name."""
        return _severity_from_wire(v)

    @field_validator("labels", mode="before")
    @classmethod
    def _coerce_labels(cls, v: Any) -> dict[str, str]:
        """Treat a missing label map as empty."""
        return v or {}

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "LogEntry":
        """Parse a log entry payload from the provider REST API."""
        return cls.model_validate(payload)


class Query(_Model):
    """A logical log query as issued by the host (before provider translation)."""

    project_id: str
    bucket_id: str = ""
    view_id: str = ""
    filter: str = ""
    limit: int
    time_from: datetime
    time_to: datetime

    @field_validator("time_from", "time_to", mode="before")
    @classmethod
    def _coerce_time(cls, v: Any) -> datetime:
        """Coerce range bounds into aware UTC datetimes."""
        dt = parse_rfc3339_datetime(v)
        if dt is None:
            raise ValueError("time range bounds are required")
        return dt


class NormalizedEntry(_Model):
    """One display unit: message text, flat labels and the entry timestamp."""

    insert_id: str
    message: str
    labels: dict[str, str]
    timestamp: datetime
