"""Post-process project, bucket and view listings for the query editor.

Bucket and view lists start with an empty entry, which the editor shows as
"default": no bucket means the legacy project-wide scope, no view means the
bucket's `_AllLogs` view.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

INACTIVE_LIFECYCLE_STATES = frozenset({"DELETE_REQUESTED", "DELETE_IN_PROGRESS"})


def active_project_ids(projects: Iterable[Mapping[str, Any]]) -> list[str]:
    """Project ids of every project not scheduled for deletion."""
    return [
        str(p.get("projectId", ""))
        for p in projects
        if p.get("lifecycleState") not in INACTIVE_LIFECYCLE_STATES and p.get("projectId")
    ]


def bucket_ids(bucket_names: Iterable[str]) -> list[str]:
    """Turn `projects/p/locations/global/buckets/b` into `global/buckets/b`."""
    ids = [""]
    for name in bucket_names:
        parts = name.split("/")
        ids.append("/".join(parts[3:]) if len(parts) > 3 else name)
    return ids


def view_ids(view_names: Iterable[str]) -> list[str]:
    """Turn `.../buckets/b/views/v` into `v`."""
    return [""] + [name.rsplit("/", 1)[-1] for name in view_names]
