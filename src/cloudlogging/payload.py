"""Extract the display message from a log entry payload.

Each payload variant has exactly one rendering:

- text: the text itself
- json: the `message` field when present, otherwise the whole object
- proto: the decoded message as JSON, or a raw rendering when it cannot be decoded
- none: `UnknownPayloadError`
"""

from __future__ import annotations

import json
import math
from typing import Any

from loguru import logger

from .decoders import DEFAULT_REGISTRY, DecoderRegistry
from .errors import DecodeFailure, UnknownPayloadError
from .models import JsonPayload, Payload, ProtoPayload, TextPayload

MESSAGE_FIELD = "message"


def _integral_floats(value: Any) -> Any:
    """Render floats like 123.0 as 123, recursively (JSON numbers have no int/float split)."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        return {k: _integral_floats(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_integral_floats(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialize a structured value compactly with sorted keys."""
    return json.dumps(_integral_floats(value), sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def _escape_bytes(value: bytes) -> str:
    """Escape bytes the way protobuf text format does (printable ASCII kept)."""
    out: list[str] = []
    for b in value:
        if b in (0x22, 0x5C):
            out.append("\\" + chr(b))
        elif 0x20 <= b < 0x7F:
            out.append(chr(b))
        else:
            out.append(f"\\{b:03o}")
    return "".join(out)


def raw_payload_text(payload: ProtoPayload) -> str:
    """Fallback rendering for a typed payload that could not be decoded."""
    return f'type_url:"{payload.type_url}" value:"{_escape_bytes(payload.value)}"'


def _json_message(fields: dict[str, Any]) -> str:
    if MESSAGE_FIELD not in fields:
        return canonical_json(fields)
    message = fields[MESSAGE_FIELD]
    if isinstance(message, str):
        return message
    return canonical_json(message)


def _proto_message(payload: ProtoPayload, registry: DecoderRegistry) -> str:
    try:
        decoded = registry.decode_payload(payload)
    except DecodeFailure as exc:
        logger.debug("Rendering {} payload as raw text: {}", payload.type_url, exc.reason)
        return raw_payload_text(payload)
    return canonical_json(decoded)


def extract_message(payload: Payload, registry: DecoderRegistry = DEFAULT_REGISTRY) -> str:
    """Return the display message for a payload.

    Raises:
    - `UnknownPayloadError` when the entry has no payload
    """
    if isinstance(payload, TextPayload):
        return payload.text
    if isinstance(payload, JsonPayload):
        return _json_message(payload.fields)
    if isinstance(payload, ProtoPayload):
        return _proto_message(payload, registry)
    # NoPayload, or an object that is not a payload at all.
    raise UnknownPayloadError(payload)
