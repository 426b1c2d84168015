"""Clean tasks: each one removes only the outputs of its matching build task."""

from __future__ import annotations

from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.logging import get_logger
from .common import remove_matching


def _clean(name: str, root, patterns: list[str]) -> None:
    removed = remove_matching(root, patterns)
    get_logger(f"themepipe.task.{name}").debug("Removed %d path(s) under %s", len(removed), root)


@task(name="clean:css:main")
def clean_css_main(ctx: BuildContext):
    _clean("clean:css:main", ctx.config.dist.css, ["main.*"])


@task(name="clean:css:admin")
def clean_css_admin(ctx: BuildContext):
    _clean("clean:css:admin", ctx.config.dist.css, ["admin.*"])


@task(name="clean:js:main")
def clean_js_main(ctx: BuildContext):
    _clean("clean:js:main", ctx.config.dist.js, ["main.*"])


@task(name="clean:js:vendor")
def clean_js_vendor(ctx: BuildContext):
    _clean("clean:js:vendor", ctx.config.dist.js, ["vendor*.js", "vendor*.js.map"])


@task(name="clean:sprites")
def clean_sprites(ctx: BuildContext):
    cache = ctx.config.sprites_cache
    _clean("clean:sprites", cache.parent, [cache.name])


@task(name="clean:images")
def clean_images(ctx: BuildContext):
    _clean("clean:images", ctx.config.dist.img, ["**/*"])


@task(name="clean:copy")
def clean_copy(ctx: BuildContext):
    dist = ctx.config.dist
    _clean("clean:copy", dist.root, [
        "**/*",
        "!" + dist.css.name,
        "!" + dist.js.name,
        "!" + dist.img.name,
    ])
