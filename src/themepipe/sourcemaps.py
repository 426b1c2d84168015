"""Source maps for concatenated bundles.

A bundle is its chunks joined by newlines. Each chunk may carry its own v3 map;
`concat` returns the joined text plus an index map whose sections are those
maps, offset by the number of lines that precede each chunk.
"""

from __future__ import annotations

import base64
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path


_INLINE_MAP = re.compile(
    r"\n?/\*#\s*sourceMappingURL=data:application/json(?:;charset=[\w-]+)?;base64,"
    r"([A-Za-z0-9+/=]+)\s*\*/\s*$"
)


@dataclass
class Chunk:
    text: str
    map: dict | None = None


def concat(chunks: list[Chunk], file: str) -> tuple[str, dict]:
    parts: list[str] = []
    sections: list[dict] = []
    line = 0
    for chunk in chunks:
        text = chunk.text.rstrip()
        if not text:
            continue
        if chunk.map is not None:
            sections.append({"offset": {"line": line, "column": 0}, "map": chunk.map})
        parts.append(text)
        line += text.count("\n") + 1
    return "\n".join(parts), {"version": 3, "file": file, "sections": sections}


def source_ref(path: Path, map_dir: Path) -> str:
    """Path of a source as seen from the directory holding the map."""
    return Path(os.path.relpath(path, map_dir)).as_posix()


def identity_map(path: Path, content: str, map_dir: Path) -> dict:
    """Map each line of an unmodified file onto the same line of its source."""
    lines = content.rstrip().count("\n") + 1
    # Every segment is column 0; only the source line advances, by one
    mappings = ";".join(["AAAA"] + ["AACA"] * (lines - 1))
    return {
        "version": 3,
        "sources": [source_ref(path, map_dir)],
        "sourcesContent": [content],
        "names": [],
        "mappings": mappings,
    }


def inline_comment(source_map: dict) -> str:
    data = base64.b64encode(json.dumps(source_map).encode("utf-8")).decode("ascii")
    return f"/*# sourceMappingURL=data:application/json;base64,{data} */"


def split_inline(css: str) -> tuple[str, dict | None]:
    """Strip a trailing inline map comment and return it decoded."""
    m = _INLINE_MAP.search(css)
    if m is None:
        return css, None
    try:
        source_map = json.loads(base64.b64decode(m.group(1)))
    except ValueError:
        return css, None
    return css[: m.start()], source_map


def url_comment(map_name: str, css: bool) -> str:
    if css:
        return f"/*# sourceMappingURL={map_name} */"
    return f"//# sourceMappingURL={map_name}"
