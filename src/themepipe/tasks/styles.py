"""Stylesheet tasks: bulk-import expansion, libsass, autoprefix, concat.

A file that fails to compile is logged and left out of the bundle; the rest of
the bundle is still written. In dev mode each chunk keeps its libsass map and
the bundle gets a single index map beside it.
"""

from __future__ import annotations

import glob
import json
import os
import re
import tempfile
from pathlib import Path

import sass

from ..config import BuildConfig, BuildContext
from ..orchestrator import task
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import get_logger
from ..orchestrator.paths import PathSet
from ..orchestrator.tools import run_tool
from ..sourcemaps import Chunk, inline_comment, source_ref, split_inline
from .common import write_bundle


_GLOB_IMPORT = re.compile(r"""@import\s+(["'])([^"']*[*?][^"']*)\1\s*;""")
_STYLE_SUFFIXES = {".scss", ".sass", ".css"}


def expand_bulk_imports(source: str, base_dir: Path) -> str:
    """Replace `@import "dir/*";` with one import per matching file, sorted."""

    def _sub(m: re.Match) -> str:
        hits = sorted(
            Path(h).as_posix()
            for h in glob.glob(m.group(2), root_dir=base_dir, recursive=True)
            if Path(h).suffix in _STYLE_SUFFIXES
        )
        return "\n".join(f'@import "{h}";' for h in hits)

    return _GLOB_IMPORT.sub(_sub, source)


def _compile_mapped(path: Path, map_path: Path, kwargs: dict) -> Chunk:
    css, source_map = sass.compile(
        filename=str(path),
        source_map_filename=str(map_path),
        source_map_contents=True,
        omit_source_map_url=True,
        **kwargs,
    )
    return Chunk(css, json.loads(source_map))


def compile_file(path: Path, config: BuildConfig, map_path: Path) -> Chunk:
    """Compile one stylesheet; in dev mode the chunk carries its own map.

    Map sources are relative to `map_path`, the map written beside the bundle.
    """
    source = path.read_text(encoding="utf-8")
    expanded = expand_bulk_imports(source, path.parent)
    kwargs = {
        "output_style": config.output_style,
        "include_paths": [str(path.parent), *config.include_paths],
    }
    if not config.options.dev:
        if expanded != source:
            return Chunk(sass.compile(string=expanded, **kwargs))
        return Chunk(sass.compile(filename=str(path), **kwargs))
    if expanded == source:
        return _compile_mapped(path, map_path, kwargs)
    # libsass only maps files, so the expanded source is staged on disk
    with tempfile.TemporaryDirectory(prefix="themepipe-") as tmp:
        staged = Path(tmp) / path.name
        staged.write_text(expanded, encoding="utf-8")
        chunk = _compile_mapped(staged, map_path, kwargs)
    marker = f"{Path(tmp).name}/{staged.name}"
    original = source_ref(path, map_path.parent)
    chunk.map["sources"] = [
        original if s.endswith(marker) else s for s in chunk.map.get("sources", [])
    ]
    return chunk


def autoprefix(chunk: Chunk, config: BuildConfig, logger) -> Chunk:
    command = config.tool("autoprefixer")
    if not command or not chunk.text.strip():
        return chunk
    env = dict(os.environ, BROWSERSLIST=", ".join(config.browsers))
    stdin, args = chunk.text, []
    if chunk.map is not None:
        # postcss picks up the inline map and emits an updated one
        stdin, args = chunk.text.rstrip() + "\n" + inline_comment(chunk.map), ["--map"]
    try:
        out = run_tool(command, args, stdin=stdin, cwd=config.project_root, env=env)
    except ToolError as e:
        logger.warning("Autoprefixer failed, writing unprefixed CSS: %s", e)
        return chunk
    if chunk.map is None:
        return Chunk(out)
    css, source_map = split_inline(out)
    return Chunk(css, source_map if source_map is not None else chunk.map)


def compile_scss(ctx: BuildContext, name: str, path_set: PathSet, out_name: str) -> Path:
    config = ctx.config
    logger = get_logger(f"themepipe.task.{name}")
    out = config.dist.css / out_name
    map_path = out.with_name(out_name + ".map")
    chunks: list[Chunk] = []
    for f in path_set.paths(config.project_root):
        # Partials are only pulled in through imports
        if f.name.startswith("_"):
            continue
        try:
            chunks.append(autoprefix(compile_file(f, config, map_path), config, logger))
        except sass.CompileError as e:
            logger.error("Sass error in %s:\n%s", f, e)
    return write_bundle(ctx, out, chunks, logger)


@task(name="compile:scss:main", deps=["clean:css:main", "lint:scss:main", "sprites"])
def compile_scss_main(ctx: BuildContext):
    compile_scss(ctx, "compile:scss:main", ctx.config.paths.scss_main, "main.min.css")


@task(name="compile:scss:admin", deps=["clean:css:admin", "lint:scss:admin"])
def compile_scss_admin(ctx: BuildContext):
    compile_scss(ctx, "compile:scss:admin", ctx.config.paths.scss_admin, "admin.min.css")


# Watch variants skip the sprite rebuild
@task(name="watch:compile:scss:main", deps=["clean:css:main", "lint:scss:main"])
def watch_compile_scss_main(ctx: BuildContext):
    compile_scss(ctx, "watch:compile:scss:main", ctx.config.paths.scss_main, "main.min.css")


@task(name="watch:compile:scss:admin", deps=["clean:css:admin", "lint:scss:admin"])
def watch_compile_scss_admin(ctx: BuildContext):
    compile_scss(ctx, "watch:compile:scss:admin", ctx.config.paths.scss_admin, "admin.min.css")
