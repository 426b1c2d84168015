"""Sprite sheets.

PNGs under `src/img/sprites/<group>/` are stacked vertically into
`<group>.png`, with a `<group>.css` fragment holding one `.icon-<group>-<name>`
rule per image. Both land in the sprite cache, where the image and stylesheet
tasks pick them up. PNGs placed directly in `src/img/sprites/` form the
`sprite` group.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from ..config import BuildContext
from ..orchestrator import task
from ..orchestrator.logging import get_logger
from ..orchestrator.paths import SourceFile
from ..orchestrator.utils import slugify, strip_suffix


log = get_logger("themepipe.task.sprites")

DEFAULT_GROUP = "sprite"
RETINA_SUFFIX = "-retina"
RETINA_MEDIA = "(-webkit-min-device-pixel-ratio: 2), (min-resolution: 192dpi)"


@dataclass
class Icon:
    name: str
    source: Path
    x: int
    y: int
    width: int
    height: int


def group_files(files: list[SourceFile]) -> "OrderedDict[str, list[SourceFile]]":
    groups: OrderedDict[str, list[SourceFile]] = OrderedDict()
    for f in files:
        group = f.relpath.split("/")[0] if "/" in f.relpath else DEFAULT_GROUP
        groups.setdefault(group, []).append(f)
    return groups


def icon_name(path: Path) -> str:
    return strip_suffix(path.stem, RETINA_SUFFIX)


def pack(files: list[SourceFile]) -> tuple[list[Icon], Image.Image]:
    """Stack images top to bottom and return their positions plus the sheet."""
    images = []
    for f in files:
        with Image.open(f.path) as im:
            images.append((f.path, im.convert("RGBA")))
    width = max((im.width for _, im in images), default=0)
    height = sum(im.height for _, im in images)
    sheet = Image.new("RGBA", (max(width, 1), max(height, 1)), (0, 0, 0, 0))
    icons: list[Icon] = []
    y = 0
    for path, im in images:
        sheet.paste(im, (0, y))
        icons.append(Icon(icon_name(path), path, 0, y, im.width, im.height))
        y += im.height
    return icons, sheet


def retina_sheet(icons: list[Icon], retina: dict[str, Path], size: tuple[int, int]) -> Image.Image:
    sheet = Image.new("RGBA", (size[0] * 2, size[1] * 2), (0, 0, 0, 0))
    for icon in icons:
        path = retina.get(icon.name)
        if path is None:
            continue
        with Image.open(path) as im:
            sheet.paste(im.convert("RGBA"), (icon.x * 2, icon.y * 2))
    return sheet


def css_for(group: str, icons: list[Icon], size: tuple[int, int], retina: bool) -> str:
    lines: list[str] = []
    for icon in icons:
        lines.append(
            f".icon-{slugify(group)}-{slugify(icon.name)} {{\n"
            f"  background-image: url(../img/{group}.png);\n"
            f"  background-position: {-icon.x}px {-icon.y}px;\n"
            f"  width: {icon.width}px;\n"
            f"  height: {icon.height}px;\n"
            f"}}"
        )
    if retina:
        lines.append(f"@media {RETINA_MEDIA} {{")
        for icon in icons:
            lines.append(
                f"  .icon-{slugify(group)}-{slugify(icon.name)} {{\n"
                f"    background-image: url(../img/{group}{RETINA_SUFFIX}.png);\n"
                f"    background-size: {size[0]}px {size[1]}px;\n"
                f"  }}"
            )
        lines.append("}")
    return "\n".join(lines) + "\n"


def build_group(ctx: BuildContext, group: str, files: list[SourceFile],
                retina_files: list[SourceFile]) -> list[Path]:
    cache = ctx.config.sprites_cache
    cache.mkdir(parents=True, exist_ok=True)
    icons, sheet = pack(files)
    sheet_path = cache / f"{group}.png"
    sheet.save(sheet_path, optimize=True)
    written = [sheet_path]

    use_retina = ctx.config.options.retina and bool(retina_files)
    if use_retina:
        retina = {icon_name(f.path): f.path for f in retina_files}
        retina_path = cache / f"{group}{RETINA_SUFFIX}.png"
        retina_sheet(icons, retina, sheet.size).save(retina_path, optimize=True)
        written.append(retina_path)

    css_path = cache / f"{group}.css"
    css_path.write_text(css_for(group, icons, sheet.size, use_retina), encoding="utf-8")
    written.append(css_path)
    return written


@task(name="sprites", deps=["clean:sprites"])
def sprites(ctx: BuildContext):
    root = ctx.config.project_root
    groups = group_files(ctx.config.paths.sprites.expand(root))
    retina_groups = group_files(ctx.config.paths.sprites_retina.expand(root))
    if not groups:
        log.info("No sprite sources")
        return
    for group, files in groups.items():
        try:
            for p in build_group(ctx, group, files, retina_groups.get(group, [])):
                log.info("Created %s", p)
        except (OSError, ValueError) as e:
            log.error("Sprite group %s failed: %s", group, e)
