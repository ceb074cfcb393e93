"""Assemble the flat label map shown next to each log line.

Labels are written in a fixed order and later writes win on a key collision:

1. `id`, `level`
2. `resource.type`, `resource.labels.<k>`
3. provider labels (`labels."<k>"` or `<k>`, see `NormalizationConfig.label_key_style`)
4. `jsonPayload.<path>` (without `message`) or `protoPayload.<path>` for known types
5. `httpRequest.<path>`, with `latency` as a duration string
6. `trace`, `traceId`, `spanId`
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from loguru import logger

from config import NormalizationConfig

from .decoders import DEFAULT_REGISTRY, DecoderRegistry
from .errors import DecodeFailure
from .flatten import flatten
from .models import JsonPayload, LogEntry, Payload, ProtoPayload
from .payload import MESSAGE_FIELD
from .severity import normalize_severity

_NANOS_PER_SECOND = 1_000_000_000


def provider_label_key(key: str, style: str = "quoted") -> str:
    """Return the label name used for a provider-attached label."""
    if style == "raw":
        return key
    return f'labels."{key}"'


def _with_fraction(value: int, digits: int) -> str:
    whole, frac = divmod(value, 10**digits)
    if not frac:
        return str(whole)
    return f"{whole}." + str(frac).rjust(digits, "0").rstrip("0")


def format_duration(nanos: int) -> str:
    """Render nanoseconds the way Go's `time.Duration.String` does ("1.5s", "250ms", "1m30s")."""
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    u = abs(nanos)
    if u < 1_000:
        return f"{sign}{u}ns"
    if u < 1_000_000:
        return f"{sign}{_with_fraction(u, 3)}µs"
    if u < _NANOS_PER_SECOND:
        return f"{sign}{_with_fraction(u, 6)}ms"

    total_seconds, frac = divmod(u, _NANOS_PER_SECOND)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = _with_fraction(seconds * _NANOS_PER_SECOND + frac, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{text}"
    if minutes:
        return f"{sign}{minutes}m{text}"
    return sign + text


def _duration_nanos(value: Any) -> int | None:
    """Parse a provider duration ("0.25s", seconds as a number, or {seconds, nanos})."""
    try:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(Decimal(str(value)) * _NANOS_PER_SECOND)
        if isinstance(value, str) and value.strip().endswith("s"):
            return int(Decimal(value.strip()[:-1]) * _NANOS_PER_SECOND)
        if isinstance(value, dict):
            return int(Decimal(str(value.get("seconds", 0))) * _NANOS_PER_SECOND) + int(value.get("nanos", 0))
    except (ArithmeticError, TypeError, ValueError):
        return None
    return None


def _payload_labels(payload: Payload, registry: DecoderRegistry) -> list[tuple[str, str]]:
    if isinstance(payload, JsonPayload):
        return flatten(payload.fields, "jsonPayload", exclude={MESSAGE_FIELD})
    if isinstance(payload, ProtoPayload):
        # Only known schemas become labels, even when the provider already rendered the payload.
        if not registry.knows(payload.type_url):
            return []
        try:
            decoded = registry.decode_payload(payload)
        except DecodeFailure as exc:
            logger.warning("Skipping protoPayload labels for {}: {}", payload.type_url, exc.reason)
            return []
        return flatten(decoded, "protoPayload")
    return []


def _http_request_labels(http_request: dict[str, Any]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for key in sorted(http_request):
        value = http_request[key]
        if key == "latency":
            nanos = _duration_nanos(value)
            if nanos is not None:
                pairs.append(("httpRequest.latency", format_duration(nanos)))
                continue
        pairs.extend(flatten(value, f"httpRequest.{key}"))
    return pairs


def build_labels(
    entry: LogEntry,
    config: NormalizationConfig | None = None,
    registry: DecoderRegistry = DEFAULT_REGISTRY,
) -> dict[str, str]:
    """Build the label map for one log entry. Never raises for payload problems."""
    config = config or NormalizationConfig()
    labels: dict[str, str] = {
        "id": entry.insert_id,
        "level": normalize_severity(entry.severity, config.default_severity_level),
    }

    resource = entry.resource
    if resource.type:
        labels["resource.type"] = resource.type
    for key in sorted(resource.labels):
        labels[f"resource.labels.{key}"] = resource.labels[key]

    for key in sorted(entry.labels):
        labels[provider_label_key(key, config.label_key_style)] = entry.labels[key]

    labels.update(_payload_labels(entry.payload, registry))

    if entry.http_request is not None:
        labels.update(_http_request_labels(entry.http_request))

    if entry.trace:
        labels["trace"] = entry.trace
        labels["traceId"] = entry.trace.rsplit("/", 1)[-1]
    if entry.span_id:
        labels["spanId"] = entry.span_id

    return labels
