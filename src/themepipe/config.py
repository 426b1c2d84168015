"""Build configuration.

Everything a task needs to know is collected here once, at startup, from three
places: the package descriptor (`package.json`), the optional YAML build file
(`themepipe.yaml`) and the command-line flags. The result is a frozen
`BuildConfig` that is handed to every task through `BuildContext`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping

import yaml

from .orchestrator.errors import ConfigurationError
from .orchestrator.paths import PathSet
from .orchestrator.reload import LiveReload
from .orchestrator.utils import _get


PACKAGE_FILE = "package.json"
SETTINGS_FILE = "themepipe.yaml"

DEFAULT_DIST = "../themes/{name}"
DEFAULT_INCLUDE_PATHS = ("bower_components", "bower_components/foundation-sites/scss")
DEFAULT_BROWSERS = ("> 5%", "IE 9")


@dataclass(frozen=True)
class BuildOptions:
    dev: bool = False
    watch: bool = False
    retina: bool = False


@dataclass(frozen=True)
class SourcePaths:
    copy: PathSet
    scss_main: PathSet
    scss_admin: PathSet
    coffee_main: PathSet
    js_main: PathSet
    images: PathSet
    sprites: PathSet
    sprites_retina: PathSet
    vendor_manifests: PathSet
    js_dir: str
    sprites_cache: str


def source_paths(src: str = "src") -> SourcePaths:
    cache = f"{src}/.sprites-cache"
    return SourcePaths(
        copy=PathSet([
            f"{src}/**/*",
            f"!{cache}",
            f"!{src}/css",
            f"!{src}/js",
            f"!{src}/img",
            f"!{src}/composer.{{json,lock}}",
        ]),
        scss_main=PathSet([
            f"{cache}/**/*.css",
            f"{src}/css/**/*.scss",
            f"!{src}/css/admin.scss",
            f"!{src}/css/admin/**/*.scss",
        ]),
        scss_admin=PathSet([
            f"{src}/css/admin.scss",
            f"{src}/css/admin/**/*.scss",
        ]),
        coffee_main=PathSet([f"{src}/js/**/*.coffee", f"!{src}/js/vendor"]),
        js_main=PathSet([f"{src}/js/**/*.js", f"!{src}/js/vendor"]),
        images=PathSet([
            f"{src}/img/**/*",
            f"{cache}/*.png",
            f"!{src}/img/sprites",
        ]),
        sprites=PathSet([
            f"{src}/img/sprites/**/*.png",
            f"!{src}/img/sprites/**/*-retina.png",
        ]),
        sprites_retina=PathSet([f"{src}/img/sprites/**/*-retina.png"]),
        vendor_manifests=PathSet([f"{src}/js/vendor*.js.json"]),
        js_dir=f"{src}/js",
        sprites_cache=cache,
    )


@dataclass(frozen=True)
class DistPaths:
    root: Path
    css: Path
    js: Path
    img: Path

    @classmethod
    def under(cls, root: Path) -> "DistPaths":
        return cls(root=root, css=root / "css", js=root / "js", img=root / "img")


@dataclass(frozen=True)
class BuildConfig:
    project_root: Path
    name: str
    package: Mapping[str, Any]
    src: str
    dist: DistPaths
    paths: SourcePaths
    options: BuildOptions = field(default_factory=BuildOptions)
    include_paths: tuple[str, ...] = ()
    output_style: str = "compressed"
    browsers: tuple[str, ...] = DEFAULT_BROWSERS
    jpeg_quality: int = 85
    livereload_url: str = "http://localhost:35729"
    reload_path: str = "index.php"
    tools: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    log_file: Path | None = None

    @property
    def sprites_cache(self) -> Path:
        return self.project_root / self.paths.sprites_cache

    def tool(self, name: str) -> tuple[str, ...]:
        return tuple(self.tools.get(name) or ())


@dataclass
class BuildContext:
    config: BuildConfig
    reloader: LiveReload
    # Set by the CLI once the task graph exists; used by the watch task
    run_tasks: Callable[[list[str]], object] | None = None


def load_package(project_root: Path) -> dict:
    path = project_root / PACKAGE_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            pkg = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Package descriptor not found: {path}") from e
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Malformed package descriptor {path}: {e}") from e
    if not isinstance(pkg, dict) or not str(pkg.get("name") or "").strip():
        raise ConfigurationError(f"Package descriptor {path} has no 'name'")
    return pkg


def load_settings(path: str | Path | None, project_root: Path) -> dict:
    """Read the YAML build settings. A missing default file means no settings."""
    explicit = path is not None
    p = Path(path) if explicit else project_root / SETTINGS_FILE
    if not p.is_absolute():
        p = project_root / p
    if not p.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {p}")
        return {}
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed config {p}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {p} must be a mapping")
    return data


def _tools(settings: dict) -> dict[str, tuple[str, ...]]:
    raw = _get(settings, "tools", default={})
    if not isinstance(raw, dict):
        raise ConfigurationError("'tools' must map tool names to argv lists")
    tools: dict[str, tuple[str, ...]] = {}
    for name, argv in raw.items():
        if isinstance(argv, str):
            argv = argv.split()
        tools[str(name)] = tuple(str(a) for a in (argv or ()))
    return tools


def load_config(
    project_root: str | Path,
    options: BuildOptions | None = None,
    config_path: str | Path | None = None,
) -> BuildConfig:
    root = Path(project_root).resolve()
    pkg = load_package(root)
    settings = load_settings(config_path, root)
    name = str(pkg["name"]).strip()

    src = str(_get(settings, "src", default="src")).rstrip("/")
    dist_template = str(_get(settings, "dist", default=DEFAULT_DIST))
    try:
        dist_rel = dist_template.format(name=name)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigurationError(f"Bad 'dist' template {dist_template!r}: {e}") from e
    dist_root = Path(os.path.normpath(root / dist_rel))

    include_paths = tuple(
        str(root / p) for p in _get(settings, "sass", "include_paths", default=DEFAULT_INCLUDE_PATHS)
    )
    log_file = _get(settings, "log_file")

    return BuildConfig(
        project_root=root,
        name=name,
        package=MappingProxyType(pkg),
        src=src,
        dist=DistPaths.under(dist_root),
        paths=source_paths(src),
        options=options or BuildOptions(),
        include_paths=include_paths,
        output_style=str(_get(settings, "sass", "output_style", default="compressed")),
        browsers=tuple(_get(settings, "autoprefixer", "browsers", default=DEFAULT_BROWSERS)),
        jpeg_quality=int(_get(settings, "images", "jpeg_quality", default=85)),
        livereload_url=str(_get(settings, "livereload", "url", default="http://localhost:35729")),
        reload_path=str(_get(settings, "livereload", "reload_path", default="index.php")),
        tools=MappingProxyType(_tools(settings)),
        log_file=root / log_file if log_file else None,
    )
