"""Drive a log entry cursor into normalized display units.

The pager pulls one record at a time from a provider cursor, normalizes it and
stops at whichever comes first:

- the cursor is exhausted (`StopIteration`)
- `limit` units have been yielded (no further record is pulled)
- pulling, parsing or normalizing a record fails; the failure is kept on
  `pager.error` and everything yielded before it stays valid

The pager holds no state outside itself, so a caller may abandon it between
records (e.g. on cancellation) at any point.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from config import NormalizationConfig

from .decoders import DEFAULT_REGISTRY, DecoderRegistry
from .errors import StreamError, UnknownPayloadError
from .labels import build_labels
from .models import LogEntry, NormalizedEntry
from .payload import extract_message


def normalize_entry(
    entry: LogEntry,
    config: NormalizationConfig | None = None,
    registry: DecoderRegistry = DEFAULT_REGISTRY,
) -> NormalizedEntry:
    """Normalize one entry.

    Raises:
    - `UnknownPayloadError` when the entry has no payload
    """
    return NormalizedEntry(
        insert_id=entry.insert_id,
        message=extract_message(entry.payload, registry),
        labels=build_labels(entry, config, registry),
        timestamp=entry.timestamp,
    )


@dataclass
class PagerStats:
    pulled: int = 0
    yielded: int = 0
    message_failures: int = 0


class LogEntryPager:
    """One-shot iterable of `NormalizedEntry` over a cursor of raw entries."""

    def __init__(
        self,
        cursor: Iterable[LogEntry | Mapping[str, Any]],
        limit: int,
        *,
        config: NormalizationConfig | None = None,
        registry: DecoderRegistry = DEFAULT_REGISTRY,
    ) -> None:
        """Create a pager.

        Args:
            cursor: Provider cursor yielding `LogEntry` objects or REST-shaped dicts.
            limit: Maximum number of units to yield (must be > 0).
            config: Normalization options; defaults to `NormalizationConfig()`.
            registry: Decoders for typed payloads.
        """
        if limit <= 0:
            raise ValueError(f"limit must be > 0. Got: {limit}")
        self._cursor = iter(cursor)
        self._limit = limit
        self._config = config or NormalizationConfig()
        self._registry = registry
        self._started = False

        self.error: StreamError | None = None
        self.stats = PagerStats()

    @property
    def stopped_early(self) -> bool:
        return self.error is not None

    def __iter__(self) -> Iterator[NormalizedEntry]:
        if self._started:
            raise RuntimeError("LogEntryPager can only be iterated once")
        self._started = True
        return self._run()

    def _stop(self, exc: BaseException) -> None:
        self.error = StreamError(exc, yielded=self.stats.yielded)
        logger.error("Stopped reading log entries after {}: {}", self.stats.yielded, exc)

    def _run(self) -> Iterator[NormalizedEntry]:
        while self.stats.yielded < self._limit:
            try:
                raw = next(self._cursor)
            except StopIteration:
                return
            except Exception as exc:  # noqa: BLE001 - any cursor failure ends the stream
                self._stop(exc)
                return
            self.stats.pulled += 1

            try:
                entry = raw if isinstance(raw, LogEntry) else LogEntry.from_api(raw)
            except (ValidationError, TypeError) as exc:
                self._stop(exc)
                return

            unit = self._normalize(entry)
            if unit is None:
                return
            self.stats.yielded += 1
            yield unit

    def _message(self, entry: LogEntry) -> str | None:
        """Extract the message, applying the configured message failure policy (None = stop)."""
        try:
            return extract_message(entry.payload, self._registry)
        except UnknownPayloadError as exc:
            self.stats.message_failures += 1
            if self._config.message_error_policy == "stop":
                self._stop(exc)
                return None
            # Some entries carry no payload; keep them with their labels.
            logger.warning("Failed getting log message for {}: {}", entry.insert_id, exc)
            return ""

    def _normalize(self, entry: LogEntry) -> NormalizedEntry | None:
        try:
            message = self._message(entry)
            if message is None:
                return None
            labels = build_labels(entry, self._config, self._registry)
        except Exception as exc:  # noqa: BLE001 - a broken record ends the stream; earlier units stay valid
            self._stop(exc)
            return None
        return NormalizedEntry(insert_id=entry.insert_id, message=message, labels=labels, timestamp=entry.timestamp)


def drive(
    cursor: Iterable[LogEntry | Mapping[str, Any]],
    limit: int,
    *,
    config: NormalizationConfig | None = None,
    registry: DecoderRegistry = DEFAULT_REGISTRY,
) -> LogEntryPager:
    """Return a pager over `cursor`; iterate it, then check `.error` for an early stop."""
    return LogEntryPager(cursor, limit, config=config, registry=registry)
