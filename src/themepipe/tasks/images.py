from __future__ import annotations

import shutil
from pathlib import Path

from PIL import Image

from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.paths import PathSet
from .common import announce


log = get_logger("themepipe.task.images")

OPTIMIZABLE = {".png", ".jpg", ".jpeg", ".gif"}


def optimize_image(src: Path, dest: Path, jpeg_quality: int = 85) -> None:
    """Re-encode raster images losslessly where possible; copy anything else."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    suffix = src.suffix.lower()
    if suffix not in OPTIMIZABLE:
        shutil.copyfile(src, dest)
        return
    with Image.open(src) as im:
        if suffix in (".jpg", ".jpeg"):
            im.save(dest, format="JPEG", quality=jpeg_quality, optimize=True, progressive=True)
        elif suffix == ".gif":
            im.save(dest, format="GIF", optimize=True, save_all=getattr(im, "is_animated", False))
        else:
            im.save(dest, format="PNG", optimize=True)
    # Keep the original when re-encoding made it larger
    if dest.stat().st_size > src.stat().st_size:
        shutil.copyfile(src, dest)


def optimize_all(ctx: BuildContext, path_set: PathSet) -> list[Path]:
    config = ctx.config
    written: list[Path] = []
    for f in path_set.expand(config.project_root):
        dest = config.dist.img / f.relpath
        optimize_image(f.path, dest, config.jpeg_quality)
        written.append(dest)
    announce(ctx, written, log)
    return written


@task(name="images", deps=["clean:images", "sprites"])
def images(ctx: BuildContext):
    optimize_all(ctx, ctx.config.paths.images)


@task(name="watch:images", deps=["clean:images"])
def watch_images(ctx: BuildContext):
    optimize_all(ctx, ctx.config.paths.images)
