from __future__ import annotations

import shutil

from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.logging import get_logger


log = get_logger("themepipe.task.copy")


@task(name="copy", deps=["clean:copy"])
def copy(ctx: BuildContext):
    """Copy every remaining source file verbatim into the theme root."""
    config = ctx.config
    count = 0
    for f in config.paths.copy.expand(config.project_root):
        dest = config.dist.root / f.relpath
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(f.path, dest)
        count += 1
    log.info("Copied %d file(s) to %s", count, config.dist.root)


@task(name="reload", deps=["copy"])
def reload(ctx: BuildContext):
    ctx.reloader.reload(ctx.config.reload_path)
