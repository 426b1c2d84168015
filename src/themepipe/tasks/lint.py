"""Lint tasks. Findings are reported, never fatal to the build."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.errors import ToolError
from ..orchestrator.logging import get_logger
from ..orchestrator.merge import load_lint_config
from ..orchestrator.paths import PathSet
from ..orchestrator.tools import run_tool
from ..orchestrator.utils import _get


def _report(name: str, tool: str, command: tuple[str, ...], files: list[Path], extra: list[str] | None = None) -> bool:
    """Run a linter over `files`. Returns False when the step was skipped or reported problems."""
    logger = get_logger(f"themepipe.task.{name}")
    if not files:
        logger.info("Nothing to lint")
        return True
    if not command:
        logger.info("%s not configured, skipping %d file(s)", tool, len(files))
        return False
    try:
        out = run_tool(command, [*(extra or []), *files])
    except ToolError as e:
        logger.warning("%s reported problems: %s", tool, e)
        return False
    if out.strip():
        logger.info("%s", out.rstrip())
    return True


def lint_scss(ctx: BuildContext, name: str, path_set: PathSet) -> bool:
    files = path_set.paths(ctx.config.project_root)
    return _report(name, "stylelint", ctx.config.tool("stylelint"), files)


@task(name="lint:scss:admin")
def lint_scss_admin(ctx: BuildContext):
    lint_scss(ctx, "lint:scss:admin", ctx.config.paths.scss_admin)


@task(name="lint:scss:main")
def lint_scss_main(ctx: BuildContext):
    src = ctx.config.src
    path_set = ctx.config.paths.scss_main.extend(
        f"!{src}/css/vendor/**/*.scss",
        f"!{ctx.config.paths.sprites_cache}/**/*.css",
    )
    lint_scss(ctx, "lint:scss:main", path_set)


def coffeelint_config(ctx: BuildContext) -> dict:
    extends = _get(dict(ctx.config.package), "coffeelint", "extends")
    return load_lint_config(extends, base_dir=ctx.config.project_root)


@task(name="lint:coffee:main")
def lint_coffee_main(ctx: BuildContext):
    logger = get_logger("themepipe.task.lint:coffee:main")
    rules = coffeelint_config(ctx)
    logger.debug("coffeelint rules: %s", ", ".join(sorted(rules)) or "(none)")
    files = ctx.config.paths.coffee_main.paths(ctx.config.project_root)
    command = ctx.config.tool("coffeelint")
    if not command or not files:
        _report("lint:coffee:main", "coffeelint", command, files)
        return
    with tempfile.TemporaryDirectory(prefix="themepipe-") as tmp:
        cfg = Path(tmp) / "coffeelint.json"
        cfg.write_text(json.dumps(rules), encoding="utf-8")
        _report("lint:coffee:main", "coffeelint", command, files, extra=["-f", str(cfg)])
