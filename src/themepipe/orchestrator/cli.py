from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import List, Optional

import typer

from ..config import BuildConfig, BuildContext, BuildOptions, load_config
from .core import TaskGraph, TaskSpec
from .errors import ConfigurationError, TaskError
from .logging import get_logger
from .reload import LiveReload


app = typer.Typer(add_completion=False, help="Theme build pipeline")
log = get_logger("themepipe.cli")

TASKS_PACKAGE = "themepipe.tasks"

DEFAULT_DEPS = [
    "compile:scss:admin",
    "compile:scss:main",
    "compile:coffee:main",
    "uglify:js:vendor",
    "images",
    "copy",
]


def discover_tasks(package: str = TASKS_PACKAGE) -> List[TaskSpec]:
    """Import all modules in the tasks package and collect decorated functions."""
    specs: List[TaskSpec] = []
    pkg = importlib.import_module(package)
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{package}."):
        try:
            mod = importlib.import_module(m.name)
        except ImportError as e:
            log.warning("Failed to import %s: %s", m.name, e)
            continue
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            # Skip re-imported task functions
            if isinstance(spec, TaskSpec) and getattr(obj, "__module__", None) == mod.__name__:
                specs.append(spec)
    return specs


def default_task(options: BuildOptions) -> TaskSpec:
    deps = list(DEFAULT_DEPS)
    if options.watch:
        deps.append("watch")
    return TaskSpec(name="default", deps=deps)


def build_graph(options: BuildOptions, specs: Optional[List[TaskSpec]] = None) -> TaskGraph:
    specs = discover_tasks() if specs is None else specs
    return TaskGraph.from_specs([*specs, default_task(options)])


def build_context(config: BuildConfig, graph: TaskGraph) -> BuildContext:
    ctx = BuildContext(config=config, reloader=LiveReload(config.livereload_url))
    ctx.run_tasks = lambda names: graph.run_many(names, ctx)
    return ctx


@app.command("list")
def list_tasks(
    watch: bool = typer.Option(False, help="Show the default task as it would run with --watch"),
):
    """List registered tasks and their prerequisites."""
    try:
        graph = build_graph(BuildOptions(watch=watch))
    except ConfigurationError as e:
        log.error("%s", e)
        raise typer.Exit(code=1)
    for name in sorted(graph.tasks):
        deps = graph.tasks[name].deps
        typer.echo(f"- {name}" + (f" <- {', '.join(deps)}" if deps else ""))


@app.command()
def run(
    name: str = typer.Argument("default", help="Task name to run"),
    project: Path = typer.Option(Path("."), help="Theme project directory (holds package.json)"),
    config: Optional[Path] = typer.Option(None, help="Path to YAML build config"),
    dev: bool = typer.Option(False, "--dev", help="Emit source maps and skip JS minification"),
    watch: bool = typer.Option(False, "--watch", help="Append the watch task to the default run"),
    retina: bool = typer.Option(False, "--retina", help="Also build high-density sprite sheets"),
):
    """Run a task and, first, everything it depends on."""
    options = BuildOptions(dev=dev, watch=watch, retina=retina)
    try:
        cfg = load_config(project, options, config)
        graph = build_graph(options)
    except ConfigurationError as e:
        log.error("%s", e)
        raise typer.Exit(code=1)
    if cfg.log_file:
        get_logger("themepipe", log_file=cfg.log_file)
    if name not in graph.tasks:
        typer.echo(f"Task not found: {name}")
        raise typer.Exit(code=1)

    ctx = build_context(cfg, graph)
    try:
        done = graph.run(name, ctx)
    except TaskError as e:
        log.error("%s", e)
        raise typer.Exit(code=1)
    log.info("Finished %s (%d tasks) -> %s", name, len(done), cfg.dist.root)


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
