"""Query diagnostics.

This package records what each datasource operation asked the provider for and
how it ended (entries returned, early stops, failures), persisting records to a
sink without blocking the event loop.
"""

from .models import QueryRecord
from .recorder import DiagnosticsRecorder
from .sinks import DiagnosticsSink, DuckDBDiagnosticsSink, InMemoryDiagnosticsSink

__all__ = [
    "DiagnosticsRecorder",
    "DiagnosticsSink",
    "DuckDBDiagnosticsSink",
    "InMemoryDiagnosticsSink",
    "QueryRecord",
]
