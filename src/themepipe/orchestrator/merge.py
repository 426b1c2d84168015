from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from .logging import get_logger


log = get_logger("themepipe.merge")


def read_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def merge_sources(sources: Iterable[Any], loader: Callable[[Any], Any] = read_json) -> dict:
    """Later-wins merge over independently fallible sources.

    A source that cannot be loaded, or does not load to a mapping, is skipped;
    keys already merged from earlier sources are kept.
    """
    merged: dict = {}
    for source in sources:
        try:
            data = loader(source)
        except (OSError, TypeError, ValueError) as e:
            log.debug("Skipping config source %s: %s", source, e)
            continue
        if not isinstance(data, Mapping):
            log.debug("Skipping config source %s: not a mapping", source)
            continue
        merged.update(data)
    return merged


def load_lint_config(
    extends: str | Path | list | None, base_dir: str | Path | None = None
) -> dict:
    """Resolve a `coffeelint.extends` declaration into one rule set.

    Relative paths are resolved against `base_dir` when given.
    """
    if extends is None:
        return {}

    def _resolve(p: str | Path) -> Path:
        p = Path(p)
        return Path(base_dir) / p if base_dir is not None and not p.is_absolute() else p

    sources = list(extends) if isinstance(extends, (list, tuple)) else [extends]
    return merge_sources(sources, loader=lambda p: read_json(_resolve(p)))
