"""Vendor bundle manifests.

A manifest is a JSON array of groups, each naming files relative to a `cwd`:

    [{"cwd": "bower_components/jquery/dist/", "files": ["jquery.js"]},
     {"cwd": "", "files": ["src/js/vendor/plugin.js"]}]

Resolving it yields the patterns in manifest order with `cwd` prepended.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path

from .orchestrator.errors import ManifestError
from .orchestrator.utils import strip_suffix


MANIFEST_RE = re.compile(r"vendor[A-Za-z0-9_-]*\.js\.json")
MANIFEST_SUFFIX = ".js.json"
OUTPUT_SUFFIX = ".min.js"


def prefix_cwd(files: list[str], cwd: str | None) -> list[str]:
    # Plain string concatenation; the manifest is expected to carry its own separator
    if cwd:
        return [cwd + f for f in files]
    return list(files)


def resolve(manifest_path: str | Path) -> list[str]:
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            sources = json.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {manifest_path}: {e}") from e
    except ValueError as e:
        raise ManifestError(f"Malformed manifest {manifest_path}: {e}") from e
    if not isinstance(sources, list):
        raise ManifestError(f"Manifest {manifest_path} must be a JSON array")

    out: list[str] = []
    for i, entry in enumerate(sources):
        files = entry.get("files") if isinstance(entry, dict) else None
        if not isinstance(files, list):
            raise ManifestError(f"Manifest {manifest_path} entry {i} has no 'files' list")
        if not all(isinstance(f, str) for f in files):
            raise ManifestError(f"Manifest {manifest_path} entry {i} lists a non-string file")
        cwd = entry.get("cwd")
        if cwd is not None and not isinstance(cwd, str):
            raise ManifestError(f"Manifest {manifest_path} entry {i} has a non-string 'cwd'")
        out.extend(prefix_cwd(files, cwd or ""))
    return out


def discover(js_dir: str | Path) -> list[str]:
    """Manifest filenames in `js_dir`, rescanned on every call."""
    try:
        names = os.listdir(js_dir)
    except FileNotFoundError:
        return []
    return sorted(n for n in names if MANIFEST_RE.fullmatch(n))


def output_name(manifest_name: str) -> str:
    return strip_suffix(manifest_name, MANIFEST_SUFFIX, OUTPUT_SUFFIX)
