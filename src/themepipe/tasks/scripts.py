"""Main script bundle: CoffeeScript + plain JS, minified into main.min.js.

Compile errors are swallowed so one broken file never stops a watch session.
In dev mode nothing is minified and plain JS files are mapped line for line.
"""

from __future__ import annotations

from pathlib import Path

import rjsmin

from ..config import BuildConfig, BuildContext
from ..orchestrator import task
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import get_logger
from ..orchestrator.tools import run_tool
from ..sourcemaps import Chunk, identity_map
from .common import write_bundle


log = get_logger("themepipe.task.compile:coffee:main")


def compile_coffee(path: Path, config: BuildConfig) -> str | None:
    command = config.tool("coffee")
    if not command:
        log.debug("coffee not configured, skipping %s", path)
        return None
    try:
        return run_tool(command, [path], cwd=config.project_root)
    except ToolError as e:
        log.debug("Ignoring compile error in %s: %s", path, e)
        return None


def minify(source: str, dev: bool) -> str:
    return source if dev else rjsmin.jsmin(source)


def script_chunk(path: Path, config: BuildConfig) -> Chunk:
    source = path.read_text(encoding="utf-8")
    if config.options.dev:
        return Chunk(source, identity_map(path, source, config.dist.js))
    return Chunk(minify(source, dev=False))


@task(name="compile:coffee:main", deps=["clean:js:main", "lint:coffee:main"])
def compile_coffee_main(ctx: BuildContext):
    config = ctx.config
    root = config.project_root
    chunks: list[Chunk] = []
    for f in config.paths.coffee_main.paths(root):
        js = compile_coffee(f, config)
        if js is not None:
            chunks.append(Chunk(minify(js, config.options.dev)))
    for f in config.paths.js_main.paths(root):
        try:
            chunks.append(script_chunk(f, config))
        except (OSError, UnicodeDecodeError) as e:
            log.debug("Ignoring unreadable script %s: %s", f, e)
    write_bundle(ctx, config.dist.js / "main.min.js", chunks, log)
