from __future__ import annotations

from pathlib import Path

from ..bundles import discover, output_name, resolve
from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.errors import ManifestError
from ..orchestrator.logging import get_logger
from ..orchestrator.paths import PathSet
from .common import write_bundle
from .scripts import script_chunk


log = get_logger("themepipe.task.uglify:js:vendor")


def build_bundle(ctx: BuildContext, manifest: Path) -> Path:
    """Resolve one manifest and write its minified bundle."""
    config = ctx.config
    patterns = resolve(manifest)
    files = PathSet(patterns).paths(config.project_root)
    if not files:
        log.warning("Manifest %s matched no files", manifest.name)
    chunks = [script_chunk(f, config) for f in files]
    return write_bundle(ctx, config.dist.js / output_name(manifest.name), chunks, log)


@task(name="uglify:js:vendor", deps=["clean:js:vendor"])
def uglify_js_vendor(ctx: BuildContext):
    js_dir = ctx.config.project_root / ctx.config.paths.js_dir
    names = discover(js_dir)
    if not names:
        log.info("No vendor manifests in %s", js_dir)
        return
    failed: list[str] = []
    for name in names:
        try:
            build_bundle(ctx, js_dir / name)
        except (ManifestError, OSError, UnicodeDecodeError) as e:
            log.error("Vendor bundle %s failed: %s", name, e)
            failed.append(name)
    if failed:
        raise ManifestError("Vendor bundle(s) failed: " + ", ".join(failed))
