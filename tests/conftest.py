# tests/conftest.py

from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from themepipe.config import BuildContext, BuildOptions, load_config
from themepipe.orchestrator.reload import LiveReload


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def png(path: Path, size: tuple[int, int] = (4, 4), color=(255, 0, 0, 255)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path)
    return path


class RecordingSession:
    """Stands in for requests.Session; records live-reload notifications."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """
    A small theme project named "demo".

    Its output root resolves to `<tmp>/themes/demo` (the default `../themes/{name}`).
    """
    root = tmp_path / "demo-theme"
    write(root / "package.json", json.dumps({"name": "demo", "version": "1.0.0"}))

    write(root / "src/css/main.scss", "$c: red;\n.box { .title { color: $c; } }\n")
    write(root / "src/css/_partial.scss", ".never { color: blue; }\n")
    write(root / "src/css/admin.scss", ".admin { margin: 0; }\n")

    write(root / "src/js/app.js", "function hello(name) {\n  // greet\n  return 'hi ' + name;\n}\n")
    write(root / "src/js/vendor/lib.js", "function lib() {\n  return 1;\n}\n")
    write(
        root / "src/js/vendor.js.json",
        json.dumps([{"cwd": "src/js/vendor/", "files": ["lib.js"]}]),
    )

    png(root / "src/img/logo.png", (8, 8))
    png(root / "src/img/sprites/icons/a.png", (4, 4))
    png(root / "src/img/sprites/icons/b.png", (6, 2), (0, 0, 255, 255))

    write(root / "src/index.php", "<?php echo 'demo';\n")
    write(root / "src/templates/page.php", "<?php // page\n")
    write(root / "src/composer.json", "{}\n")
    return root


@pytest.fixture()
def dist(project: Path) -> Path:
    return project.parent / "themes" / "demo"


@pytest.fixture()
def session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture()
def make_ctx(project: Path, session: RecordingSession):
    def _make(**options) -> BuildContext:
        config = load_config(project, BuildOptions(**options))
        return BuildContext(config=config, reloader=LiveReload(config.livereload_url, session=session))

    return _make
