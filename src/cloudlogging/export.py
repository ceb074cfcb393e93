"""Read log entries exported with `gcloud logging read --format=json`.

Both a JSON array (gcloud's output) and JSON lines (one entry per line) are
accepted. Entries come back as REST-shaped dicts, ready for `LogEntry.from_api`.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any


def iter_export(path: str | Path) -> Iterator[dict[str, Any]]:
    """Yield raw entries from an export file.

    Raises:
    - `ValueError` when the file holds neither a JSON array nor JSON lines
    """
    text = Path(path).read_text(encoding="utf-8")
    stripped = text.lstrip()
    if not stripped:
        return
    if stripped.startswith("["):
        entries = json.loads(stripped)
        for entry in entries:
            yield entry
        return

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}:{lineno}: not a JSON log entry ({exc.msg})") from exc
