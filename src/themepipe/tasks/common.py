"""Helpers shared by the build tasks."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Iterable

from ..config import BuildContext
from ..orchestrator.logging import get_logger
from ..orchestrator.paths import PathSet
from ..sourcemaps import Chunk, concat, url_comment


def write_output(ctx: BuildContext, path: Path, content: str | bytes, logger=None) -> Path:
    """Write one build output, then announce it like gulp-notify + livereload."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    announce(ctx, [path], logger)
    return path


def write_bundle(ctx: BuildContext, path: Path, chunks: list[Chunk], logger=None) -> Path:
    """Concatenate chunks into `path`; in dev mode also write `<path>.map`.

    The map is an index map with one section per mapped chunk, referenced by a
    single trailing sourceMappingURL comment.
    """
    text, index = concat(chunks, path.name)
    if ctx.config.options.dev:
        map_path = path.with_name(path.name + ".map")
        write_output(ctx, map_path, json.dumps(index), logger)
        text += "\n" + url_comment(map_path.name, css=path.suffix == ".css")
    return write_output(ctx, path, text, logger)


def announce(ctx: BuildContext, paths: Iterable[Path], logger=None) -> None:
    logger = logger or get_logger("themepipe.tasks")
    paths = list(paths)
    for p in paths:
        logger.info("Created %s", p)
    ctx.reloader.changed(str(p) for p in paths)


def remove_matching(root: Path, patterns: Iterable[str]) -> list[Path]:
    """Delete everything `patterns` matches under `root`; never `root` itself."""
    if not root.exists():
        return []
    matched = PathSet(patterns).paths(root, files_only=False)
    removed: list[Path] = []
    # Deepest first so files go before their directories
    for p in sorted(matched, key=lambda x: len(x.parts), reverse=True):
        if p == root or not (p.exists() or p.is_symlink()):
            continue
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink()
        removed.append(p)
    return removed
