# tests/test_build.py

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from themepipe.config import BuildOptions, load_config
from themepipe.orchestrator.cli import app
from themepipe.orchestrator.errors import ConfigurationError
from themepipe.orchestrator.reload import LiveReload
from themepipe.orchestrator.watch import Watcher
from themepipe.tasks.sprites import sprites
from themepipe.tasks.styles import expand_bulk_imports

from .conftest import png, write


runner = CliRunner()


@pytest.fixture()
def no_watch_side_effects(monkeypatch):
    sent: list[object] = []

    def record_send(self, files):
        sent.append(files)

    def refuse_start(self):
        raise AssertionError("watcher must not start")

    monkeypatch.setattr(LiveReload, "_send", record_send)
    monkeypatch.setattr(Watcher, "start", refuse_start)
    return sent


def test_default_build_end_to_end(project: Path, dist: Path, no_watch_side_effects) -> None:
    result = runner.invoke(app, ["run", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert "demo" in str(dist)

    main_css = (dist / "css" / "main.min.css").read_text(encoding="utf-8")
    assert "color:red" in main_css
    assert ".never" not in main_css
    assert ".icon-icons-a" in main_css
    assert ".admin" in (dist / "css" / "admin.min.css").read_text(encoding="utf-8")

    main_js = (dist / "js" / "main.min.js").read_text(encoding="utf-8")
    assert "function hello(name)" in main_js
    assert "// greet" not in main_js
    assert "function lib()" not in main_js
    assert "function lib()" in (dist / "js" / "vendor.min.js").read_text(encoding="utf-8")

    assert (dist / "img" / "logo.png").exists()
    assert (dist / "img" / "icons.png").exists()
    assert not (dist / "img" / "sprites").exists()

    assert (dist / "index.php").exists()
    assert (dist / "templates" / "page.php").exists()
    assert not (dist / "composer.json").exists()
    assert not (dist / "css" / "main.scss").exists()

    assert no_watch_side_effects == []


def test_rebuild_cleans_stale_outputs(project: Path, dist: Path, no_watch_side_effects) -> None:
    assert runner.invoke(app, ["run", "--project", str(project)]).exit_code == 0
    (project / "src/templates/page.php").unlink()
    write(dist / "css" / "main.old.css", "")

    result = runner.invoke(app, ["run", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert not (dist / "templates" / "page.php").exists()
    assert not (dist / "css" / "main.old.css").exists()
    assert (dist / "css" / "admin.min.css").exists()


def test_broken_stylesheet_is_reported_not_fatal(project: Path, dist: Path, no_watch_side_effects) -> None:
    write(project / "src/css/broken.scss", ".oops { color: ; ")

    result = runner.invoke(app, ["run", "compile:scss:main", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert "color:red" in (dist / "css" / "main.min.css").read_text(encoding="utf-8")


def test_dev_mode_keeps_scripts_readable(project: Path, dist: Path, no_watch_side_effects) -> None:
    result = runner.invoke(app, ["run", "compile:coffee:main", "--dev", "--project", str(project)])

    assert result.exit_code == 0, result.output
    js = (dist / "js" / "main.min.js").read_text(encoding="utf-8")
    assert "// greet" in js
    assert js.count("sourceMappingURL") == 1
    assert js.endswith("//# sourceMappingURL=main.min.js.map")

    index = json.loads((dist / "js" / "main.min.js.map").read_text(encoding="utf-8"))
    assert index["version"] == 3 and index["file"] == "main.min.js"
    [section] = index["sections"]
    assert section["offset"] == {"line": 0, "column": 0}
    assert section["map"]["sources"][0].endswith("src/js/app.js")
    assert "// greet" in section["map"]["sourcesContent"][0]
    assert section["map"]["mappings"].startswith("AAAA")


def test_dev_mode_writes_one_stylesheet_map(project: Path, dist: Path, no_watch_side_effects) -> None:
    write(project / "src/css/second.scss", ".second { margin: 0; }\n")

    result = runner.invoke(app, ["run", "compile:scss:main", "--dev", "--project", str(project)])

    assert result.exit_code == 0, result.output
    css = (dist / "css" / "main.min.css").read_text(encoding="utf-8")
    assert css.count("sourceMappingURL") == 1
    assert css.endswith("/*# sourceMappingURL=main.min.css.map */")

    index = json.loads((dist / "css" / "main.min.css.map").read_text(encoding="utf-8"))
    assert index["version"] == 3 and index["file"] == "main.min.css"
    sections = index["sections"]
    # Sprite fragment, main.scss, second.scss
    assert len(sections) == 3
    offsets = [s["offset"]["line"] for s in sections]
    assert offsets == sorted(set(offsets))
    lines = css.split("\n")
    for section, needle, source in [(sections[1], "color:red", "main.scss"), (sections[2], ".second", "second.scss")]:
        assert needle in lines[section["offset"]["line"]]
        assert any(s.endswith(source) for s in section["map"]["sources"])
        assert section["map"]["mappings"]


def test_dev_mode_maps_bulk_imports_to_the_real_file(project: Path, dist: Path, no_watch_side_effects) -> None:
    write(project / "src/css/parts/_x.scss", ".x { top: 0; }\n")
    write(project / "src/css/bulk.scss", '@import "parts/*";\n')

    result = runner.invoke(app, ["run", "compile:scss:main", "--dev", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert ".x{top:0}" in (dist / "css" / "main.min.css").read_text(encoding="utf-8")
    index = json.loads((dist / "css" / "main.min.css.map").read_text(encoding="utf-8"))
    sources = [s for section in index["sections"] for s in section["map"]["sources"]]
    assert any(s.endswith("src/css/bulk.scss") for s in sources)
    assert any(s.endswith("src/css/parts/_x.scss") for s in sources)
    assert not any("themepipe-" in s for s in sources)


def test_production_build_writes_no_maps(project: Path, dist: Path, no_watch_side_effects) -> None:
    result = runner.invoke(app, ["run", "--project", str(project)])

    assert result.exit_code == 0, result.output
    assert not list(dist.glob("**/*.map"))
    assert "sourceMappingURL" not in (dist / "css" / "main.min.css").read_text(encoding="utf-8")


def test_failed_task_exits_non_zero(project: Path, no_watch_side_effects) -> None:
    write(project / "src/js/vendor.js.json", "not json")

    result = runner.invoke(app, ["run", "uglify:js:vendor", "--project", str(project)])

    assert result.exit_code == 1


def test_configuration_errors_exit_before_running(project: Path, dist: Path) -> None:
    (project / "package.json").write_text("{broken", encoding="utf-8")

    result = runner.invoke(app, ["run", "--project", str(project)])

    assert result.exit_code == 1
    assert not dist.exists()


def test_unknown_task(project: Path) -> None:
    result = runner.invoke(app, ["run", "nope", "--project", str(project)])
    assert result.exit_code == 1
    assert "Task not found" in result.output


def test_list_shows_default_dependencies() -> None:
    result = runner.invoke(app, ["list", "--watch"])

    assert result.exit_code == 0
    assert "- default <- compile:scss:admin" in result.output
    assert "images, copy, watch" in result.output


def test_retina_sprites(project: Path, make_ctx) -> None:
    png(project / "src/img/sprites/icons/a-retina.png", (8, 8))
    ctx = make_ctx(retina=True)

    sprites(ctx)

    cache = ctx.config.sprites_cache
    assert (cache / "icons.png").exists()
    assert (cache / "icons-retina.png").exists()
    css = (cache / "icons.css").read_text(encoding="utf-8")
    assert ".icon-icons-b" in css
    assert "background-position: 0px -4px;" in css
    assert "min-resolution: 192dpi" in css
    assert "background-size: 6px 6px;" in css


def test_sprites_without_retina_flag_ignore_retina_files(project: Path, make_ctx) -> None:
    png(project / "src/img/sprites/icons/a-retina.png", (8, 8))
    ctx = make_ctx()

    sprites(ctx)

    assert not (ctx.config.sprites_cache / "icons-retina.png").exists()
    assert ".icon-icons-a-retina" not in (ctx.config.sprites_cache / "icons.css").read_text(encoding="utf-8")


def test_bulk_import_expansion(tmp_path: Path) -> None:
    write(tmp_path / "parts/_b.scss", "")
    write(tmp_path / "parts/a.scss", "")
    write(tmp_path / "parts/notes.txt", "")

    out = expand_bulk_imports('@import "parts/*";\n@import "plain";\n', tmp_path)

    assert out == '@import "parts/_b.scss";\n@import "parts/a.scss";\n@import "plain";\n'


def test_load_config_defaults_and_overrides(project: Path) -> None:
    cfg = load_config(project, BuildOptions(dev=True))
    assert cfg.name == "demo"
    assert cfg.dist.root == project.parent / "themes" / "demo"
    assert cfg.options.dev and not cfg.options.watch
    assert cfg.tool("coffee") == ()

    write(project / "themepipe.yaml", "dist: build/{name}\ntools:\n  coffee: coffee -p -c\nimages:\n  jpeg_quality: 70\n")
    cfg = load_config(project)
    assert cfg.dist.css == project / "build" / "demo" / "css"
    assert cfg.tool("coffee") == ("coffee", "-p", "-c")
    assert cfg.jpeg_quality == 70


@pytest.mark.parametrize("pkg", ["{broken", json.dumps({"version": "1"}), json.dumps(["demo"])])
def test_bad_package_descriptor(project: Path, pkg: str) -> None:
    (project / "package.json").write_text(pkg, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(project)


def test_explicit_config_must_exist(project: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config(project, config_path="missing.yaml")
