from __future__ import annotations

from ..config import BuildContext, SourcePaths
from ..orchestrator import task
from ..orchestrator.errors import ConfigurationError
from ..orchestrator.watch import Watcher, WatchRule, rules_from


def watch_rules(paths: SourcePaths) -> list[WatchRule]:
    return rules_from([
        (paths.scss_main, ["watch:compile:scss:main"]),
        (paths.scss_admin, ["watch:compile:scss:admin"]),
        (paths.coffee_main, ["compile:coffee:main"]),
        (paths.js_main, ["compile:coffee:main"]),
        (paths.vendor_manifests, ["uglify:js:vendor"]),
        (paths.images, ["watch:images"]),
        (paths.copy, ["copy", "reload"]),
    ])


def make_watcher(ctx: BuildContext, **kwargs) -> Watcher:
    if ctx.run_tasks is None:
        raise ConfigurationError("watch needs a task runner")
    config = ctx.config
    return Watcher(
        root=config.project_root,
        rules=watch_rules(config.paths),
        trigger=ctx.run_tasks,
        watch_dir=config.project_root / config.src,
        **kwargs,
    )


@task(
    name="watch",
    deps=["compile:scss:main", "compile:coffee:main", "uglify:js:vendor", "images", "copy"],
)
def watch(ctx: BuildContext):
    """Rebuild on source changes until interrupted."""
    ctx.reloader.listen()
    make_watcher(ctx).serve_forever()
