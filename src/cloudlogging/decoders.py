"""Decoders for opaque typed payloads (`google.protobuf.Any`).

A registry maps the type name at the end of a payload's type URL to a function
turning the serialized bytes into a JSON-shaped dict. A type without a decoder
is not an error: callers fall back to a raw rendering of the payload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from google.cloud.appengine_logging_v1 import RequestLog
from google.cloud.audit import audit_log_pb2
from google.protobuf import json_format

from .errors import DecodeFailure
from .models import ProtoPayload

Decoder = Callable[[bytes], dict[str, Any]]

AUDIT_LOG_TYPE = "google.cloud.audit.AuditLog"
REQUEST_LOG_TYPE = "google.appengine.logging.v1.RequestLog"


def type_name(type_url: str) -> str:
    """Return the fully-qualified message name of a type URL."""
    return type_url.rsplit("/", 1)[-1]


def protobuf_decoder(message_cls: Any) -> Decoder:
    """Build a decoder for a generated protobuf message class."""

    def _decode(value: bytes) -> dict[str, Any]:
        """Parse the wire bytes and render them with the proto3 JSON mapping."""
        return json_format.MessageToDict(message_cls.FromString(value))

    return _decode


class DecoderRegistry:
    """Immutable mapping from payload type name to decoder."""

    def __init__(self, decoders: Mapping[str, Decoder] | None = None) -> None:
        self._decoders: Mapping[str, Decoder] = MappingProxyType(dict(decoders or {}))

    def with_decoder(self, name: str, decoder: Decoder) -> "DecoderRegistry":
        """Return a registry that also decodes `name` (replacing any existing entry)."""
        return DecoderRegistry({**self._decoders, type_name(name): decoder})

    def knows(self, type_url: str) -> bool:
        return type_name(type_url) in self._decoders

    @property
    def type_names(self) -> tuple[str, ...]:
        return tuple(sorted(self._decoders))

    def decode(self, type_url: str, value: bytes) -> dict[str, Any]:
        """Decode `value` with the decoder registered for `type_url`.

        Raises:
        - `DecodeFailure` when no decoder is registered or the bytes do not parse
        """
        decoder = self._decoders.get(type_name(type_url))
        if decoder is None:
            raise DecodeFailure(type_url, "no decoder registered")
        try:
            decoded = decoder(value)
        except Exception as exc:  # noqa: BLE001 - any decoder failure degrades to raw text
            raise DecodeFailure(type_url, str(exc) or type(exc).__name__) from exc
        if not isinstance(decoded, dict):
            raise DecodeFailure(type_url, f"decoder returned {type(decoded).__name__}, not an object")
        return decoded

    def decode_payload(self, payload: ProtoPayload) -> dict[str, Any]:
        """Return the structured form of a proto payload.

        A rendering already supplied by the provider wins over decoding the bytes.
        """
        if payload.fields is not None:
            return payload.fields
        return self.decode(payload.type_url, payload.value)


DEFAULT_REGISTRY = DecoderRegistry(
    {
        AUDIT_LOG_TYPE: protobuf_decoder(audit_log_pb2.AuditLog),
        # proto-plus wrapper; `.pb()` is the generated protobuf class underneath.
        REQUEST_LOG_TYPE: protobuf_decoder(RequestLog.pb()),
    }
)
