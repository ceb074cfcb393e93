"""Flatten structured values into path-named string labels."""

from __future__ import annotations

import math
from collections.abc import Collection
from typing import Any

# Marks a JSON null; a user-typed "null" string stays distinguishable.
NULL_SENTINEL = "null_value:NULL_VALUE"


def format_scalar(value: Any) -> str:
    """Stringify a leaf value (bool before number: bool is an int subclass)."""
    if value is None:
        return NULL_SENTINEL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def flatten(value: Any, key_prefix: str = "", *, exclude: Collection[str] = ()) -> list[tuple[str, str]]:
    """Flatten `value` into `(key, value)` pairs.

    Objects extend the key with `.field` (fields visited in sorted order), arrays
    with `[index]`. `exclude` names top-level object fields to skip.
    """
    pairs: list[tuple[str, str]] = []
    _flatten_into(pairs, value, key_prefix, exclude)
    return pairs


def _flatten_into(pairs: list[tuple[str, str]], value: Any, key: str, exclude: Collection[str] = ()) -> None:
    if isinstance(value, dict):
        for name in sorted(value):
            if name in exclude:
                continue
            _flatten_into(pairs, value[name], _join(key, str(name)))
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten_into(pairs, item, f"{key}[{index}]")
    else:
        pairs.append((key, format_scalar(value)))
