from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from .errors import ToolError
from .logging import get_logger


log = get_logger("themepipe.tools")


def run_tool(
    command: Sequence[str],
    args: Sequence[str | Path] = (),
    stdin: str | None = None,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Run an external command and return its stdout.

    Raises ToolError if the binary is missing or exits non-zero.
    """
    if not command:
        raise ToolError("No command configured")
    argv = [str(a) for a in [*command, *args]]
    log.debug("Exec: %s", " ".join(argv))
    try:
        proc = subprocess.run(
            argv,
            input=stdin,
            capture_output=True,
            text=True,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            check=False,
        )
    except OSError as e:
        raise ToolError(f"Cannot run {argv[0]}: {e}") from e
    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise ToolError(f"{argv[0]} exited with {proc.returncode}: {detail}")
    return proc.stdout
