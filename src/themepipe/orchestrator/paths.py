"""Ordered include/exclude glob sets, evaluated against a root directory.

Patterns are relative to the root and use `/` separators. `**` matches any
number of directories, `{a,b}` expands to alternatives, and a leading `!`
turns the pattern into an exclusion that removes already matched paths (and
everything below a matched directory). Later patterns win over earlier ones.
"""

from __future__ import annotations

import glob
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


_WILDCARD = re.compile(r"[*?\[{]")
_BRACES = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class SourceFile:
    path: Path
    # Relative to the glob base of the inclusion pattern that matched it
    relpath: str


def expand_braces(pattern: str) -> list[str]:
    m = _BRACES.search(pattern)
    if not m:
        return [pattern]
    out: list[str] = []
    for alt in m.group(1).split(","):
        out.extend(expand_braces(pattern[: m.start()] + alt + pattern[m.end():]))
    return out


def glob_base(pattern: str) -> str:
    """Leading directory components of `pattern` that contain no wildcard."""
    base: list[str] = []
    for part in pattern.split("/")[:-1]:
        if _WILDCARD.search(part):
            break
        base.append(part)
    return "/".join(base)


def _relative(key: str, base: str) -> str:
    if not base:
        return key
    if key.startswith(base + "/"):
        return key[len(base) + 1:]
    return Path(key).name


class PathSet:
    def __init__(self, patterns: Iterable[str]):
        self.patterns: tuple[str, ...] = tuple(str(p) for p in patterns)

    def __repr__(self) -> str:
        return f"PathSet({list(self.patterns)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PathSet) and other.patterns == self.patterns

    def __hash__(self) -> int:
        return hash(self.patterns)

    def extend(self, *patterns: str) -> "PathSet":
        return PathSet(self.patterns + tuple(patterns))

    def _evaluate(self, root: Path, files_only: bool) -> dict[str, SourceFile]:
        found: dict[str, SourceFile] = {}
        for pattern in self.patterns:
            negate = pattern.startswith("!")
            pat = pattern[1:] if negate else pattern
            for alt in expand_braces(pat):
                hits = sorted(
                    Path(h).as_posix()
                    for h in glob.glob(alt, root_dir=root, recursive=True)
                )
                if negate:
                    for hit in hits:
                        for key in [k for k in found if k == hit or k.startswith(hit + "/")]:
                            del found[key]
                    continue
                base = glob_base(alt)
                for hit in hits:
                    if hit in found:
                        continue
                    full = root / hit
                    if files_only and not full.is_file():
                        continue
                    found[hit] = SourceFile(path=full, relpath=_relative(hit, base))
        return found

    def expand(self, root: str | Path, files_only: bool = True) -> list[SourceFile]:
        return list(self._evaluate(Path(root), files_only).values())

    def paths(self, root: str | Path, files_only: bool = True) -> list[Path]:
        return [f.path for f in self.expand(root, files_only=files_only)]

    def keys(self, root: str | Path) -> set[str]:
        return set(self._evaluate(Path(root), files_only=True))
