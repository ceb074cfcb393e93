"""Map provider severities onto the log panel's level vocabulary."""

from __future__ import annotations

from types import MappingProxyType

from .models import LogSeverity

# Levels whose provider name is not itself a display level. DEFAULT is resolved
# per call because deployments disagree on whether it reads as info or debug.
_SEVERITY_OVERRIDES = MappingProxyType({LogSeverity.EMERGENCY: "critical"})


def normalize_severity(severity: LogSeverity | str | int, default_level: str = "info") -> str:
    """Return the display level for a severity.

    Every other value maps to its lower-cased symbolic name; a value the enum
    does not know keeps its own name (e.g. "TRACE" -> "trace").
    """
    if isinstance(severity, int) and not isinstance(severity, LogSeverity):
        try:
            severity = LogSeverity(severity)
        except ValueError:
            return str(severity)

    if isinstance(severity, LogSeverity):
        if severity is LogSeverity.DEFAULT:
            return default_level
        return _SEVERITY_OVERRIDES.get(severity, severity.name.lower())

    name = str(severity).strip()
    if not name or name.upper() == LogSeverity.DEFAULT.name:
        return default_level
    if name.upper() in LogSeverity.__members__:
        return normalize_severity(LogSeverity[name.upper()], default_level)
    return name.lower()
