from __future__ import annotations

"""Small helpers for reading nested config values and naming outputs."""

from typing import Dict


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def slugify(s: str) -> str:
    return (
        (s or "").strip().lower().replace(" ", "-").replace("/", "-").replace("\\", "-")
        .replace("_", "-").replace(".", "-")
    )


def strip_suffix(name: str, suffix: str, replacement: str = "") -> str:
    if suffix and name.endswith(suffix):
        return name[: -len(suffix)] + replacement
    return name
