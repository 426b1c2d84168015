from __future__ import annotations


class ThemepipeError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(ThemepipeError):
    """Bad package descriptor, build config or task graph. Raised before any task runs."""


class ManifestError(ThemepipeError):
    """A vendor bundle manifest is missing or malformed."""


class ToolError(ThemepipeError):
    """An external command could not be started or exited non-zero."""


class TaskError(ThemepipeError):
    def __init__(self, task: str, message: str):
        super().__init__(f"Task '{task}' failed: {message}")
        self.task = task
