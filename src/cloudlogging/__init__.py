"""Normalize Cloud Logging entries into log panel units (message + flat labels).

The package is transport-free: it builds the provider request for a logical
query and consumes a cursor of already-fetched entries.
"""

from .api import ListLogEntriesRequest, LoggingAPI
from .decoders import DEFAULT_REGISTRY, DecoderRegistry
from .errors import CloudLoggingError, DecodeFailure, QueryScopeError, StreamError, UnknownPayloadError
from .flatten import NULL_SENTINEL, flatten
from .labels import build_labels
from .models import (
    JsonPayload,
    LogEntry,
    LogSeverity,
    MonitoredResource,
    NoPayload,
    NormalizedEntry,
    ProtoPayload,
    Query,
    TextPayload,
)
from .pagination import LogEntryPager, drive, normalize_entry
from .payload import extract_message
from .query import add_label_filter, build_query
from .severity import normalize_severity

__all__ = [
    "DEFAULT_REGISTRY",
    "NULL_SENTINEL",
    "CloudLoggingError",
    "DecodeFailure",
    "DecoderRegistry",
    "JsonPayload",
    "ListLogEntriesRequest",
    "LogEntry",
    "LogEntryPager",
    "LogSeverity",
    "LoggingAPI",
    "MonitoredResource",
    "NoPayload",
    "NormalizedEntry",
    "ProtoPayload",
    "Query",
    "QueryScopeError",
    "StreamError",
    "TextPayload",
    "UnknownPayloadError",
    "add_label_filter",
    "build_labels",
    "build_query",
    "drive",
    "extract_message",
    "flatten",
    "normalize_entry",
    "normalize_severity",
]
