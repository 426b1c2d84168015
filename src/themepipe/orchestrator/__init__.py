"""In-repo task orchestration for the theme build.

Provides the TaskSpec/TaskGraph primitives, path-set evaluation, config merging,
file watching and live-reload, plus the Typer CLI.
"""

from .core import TaskGraph, TaskSpec, task  # re-export for convenience

__all__ = ["TaskSpec", "TaskGraph", "task"]
