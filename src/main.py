"""Normalize an exported log file the way the datasource shows it.

Reads entries saved with `gcloud logging read --format=json` (or JSON lines),
runs them through the same pager the datasource uses and prints one line per
entry. Handy for checking how labels and messages will look before pointing
a dashboard at a project.

    python src/main.py export.json --limit 20 --labels
    python src/main.py export.json --project my-project --filter 'severity>=ERROR'
    python src/main.py export.json --project my-project --label level=ERROR --exclude-label resource.type=gce_instance
"""

from __future__ import annotations

import json
import sys
from argparse import ArgumentParser
from datetime import datetime, timedelta, timezone

from loguru import logger

from cloudlogging.export import iter_export
from cloudlogging.models import NormalizedEntry, Query
from cloudlogging.pagination import LogEntryPager
from cloudlogging.query import add_label_filter, build_query
from config import PROVIDER_MAX_PAGE_SIZE, load_config


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="cloud-logging-normalize",
        description="Normalize exported Cloud Logging entries into log panel lines.",
    )
    parser.add_argument("export", help="File written by `gcloud logging read --format=json`")
    parser.add_argument("--limit", type=int, default=PROVIDER_MAX_PAGE_SIZE, help="Stop after N entries")
    parser.add_argument("--labels", action="store_true", help="Print each entry's labels as JSON")
    parser.add_argument("--project", help="Also print the request a live query would send for this project")
    parser.add_argument("--bucket", default="", help="Log bucket for --project (e.g. global/buckets/my-bucket)")
    parser.add_argument("--view", default="", help="Bucket view for --project")
    parser.add_argument("--filter", default="", help="Filter text for --project")
    parser.add_argument(
        "--label",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Restrict the --project filter to entries with this label (repeatable)",
    )
    parser.add_argument(
        "--exclude-label",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Exclude entries with this label from the --project filter (repeatable)",
    )
    parser.add_argument("--hours", type=float, default=1.0, help="Time range (hours back from now) for --project")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    return parser


def _split_label(parser: ArgumentParser, raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        parser.error(f"label filters must look like KEY=VALUE. Got: {raw!r}")
    return key, value


def apply_label_filters(
    filter_text: str, include: list[tuple[str, str]], exclude: list[tuple[str, str]]
) -> str:
    """Add the picked label restrictions to a filter, like the log panel's filter buttons do."""
    for key, value in include:
        filter_text = add_label_filter(filter_text, key, value)
    for key, value in exclude:
        filter_text = add_label_filter(filter_text, key, value, negate=True)
    return filter_text


def format_line(unit: NormalizedEntry, *, with_labels: bool = False) -> str:
    """One output line: timestamp, level and message (plus labels when asked)."""
    line = f"{unit.timestamp.isoformat()} [{unit.labels.get('level', '')}] {unit.message}"
    if with_labels:
        line += " " + json.dumps(unit.labels, sort_keys=True, ensure_ascii=False)
    return line


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    include = [_split_label(parser, raw) for raw in args.label]
    exclude = [_split_label(parser, raw) for raw in args.exclude_label]

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    cfg = load_config()

    if args.project:
        now = datetime.now(tz=timezone.utc)
        request = build_query(
            Query(
                project_id=args.project,
                bucket_id=args.bucket,
                view_id=args.view,
                filter=apply_label_filters(args.filter, include, exclude),
                limit=args.limit,
                time_from=now - timedelta(hours=args.hours),
                time_to=now,
            ),
            cfg.normalization.max_page_size,
        )
        print(f"# resource: {request.resource_names[0]}")
        print(f"# filter: {request.filter}")
        print(f"# page size: {request.page_size}, order by: {request.order_by}")

    pager = LogEntryPager(iter_export(args.export), args.limit, config=cfg.normalization)
    for unit in pager:
        print(format_line(unit, with_labels=args.labels))

    if pager.error is not None:
        print(f"stopped early: {pager.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
