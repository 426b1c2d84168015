from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .logging import get_logger, log_change
from .paths import PathSet


log = get_logger("themepipe.watch")

IDLE = "idle"
WATCHING = "watching"

_IGNORED_EVENTS = {"opened", "closed", "closed_no_write"}


@dataclass(frozen=True)
class WatchRule:
    path_set: PathSet
    tasks: tuple[str, ...]


class RuleHandler(FileSystemEventHandler):
    """Re-runs one rule's tasks when a path in its set changes.

    Membership is checked against the set both before and after the event,
    so deletions and renames out of the set still trigger.
    """

    def __init__(self, rule: WatchRule, root: Path, trigger: Callable[[list[str]], object]):
        super().__init__()
        self.rule = rule
        self.root = root
        self.trigger = trigger
        self._known = rule.path_set.keys(root)

    def _key(self, path: str | bytes) -> str | None:
        try:
            return Path(os.fsdecode(path)).relative_to(self.root).as_posix()
        except ValueError:
            return None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in _IGNORED_EVENTS:
            return
        paths = [event.src_path]
        if getattr(event, "dest_path", ""):
            paths.append(event.dest_path)
        current = self.rule.path_set.keys(self.root)
        keys = [k for k in (self._key(p) for p in paths) if k is not None]
        hit = any(k in current or k in self._known for k in keys)
        self._known = current
        if not hit:
            return
        log_change(event.event_type, os.fsdecode(event.src_path))
        try:
            self.trigger(list(self.rule.tasks))
        except Exception as e:  # noqa: BLE001
            log.error("Watch run failed (%s): %s", ", ".join(self.rule.tasks), e)


class Watcher:
    def __init__(
        self,
        root: str | Path,
        rules: Sequence[WatchRule],
        trigger: Callable[[list[str]], object],
        observer_factory: Callable[[], object] = Observer,
        watch_dir: str | Path | None = None,
    ):
        # Rule patterns are relative to `root`; events are observed under `watch_dir`
        self.root = Path(root).resolve()
        self.watch_dir = Path(watch_dir).resolve() if watch_dir is not None else self.root
        self.rules = list(rules)
        self.trigger = trigger
        self.observer_factory = observer_factory
        self.observer = None
        self.handlers: list[RuleHandler] = []
        self.state = IDLE

    def start(self) -> None:
        if self.state == WATCHING:
            return
        self.observer = self.observer_factory()
        self.handlers = [RuleHandler(rule, self.root, self.trigger) for rule in self.rules]
        for handler in self.handlers:
            self.observer.schedule(handler, str(self.watch_dir), recursive=True)
        self.observer.start()
        self.state = WATCHING
        log.info("Watching %s (%d rules)", self.watch_dir, len(self.rules))

    def stop(self) -> None:
        if self.state != WATCHING:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None
        self.handlers = []
        self.state = IDLE

    def serve_forever(self, poll: float = 1.0) -> None:
        self.start()
        try:
            while True:
                time.sleep(poll)
        except KeyboardInterrupt:
            log.info("Stopping watch")
        finally:
            self.stop()


def rules_from(pairs: Iterable[tuple[PathSet, Sequence[str]]]) -> list[WatchRule]:
    return [WatchRule(path_set=ps, tasks=tuple(tasks)) for ps, tasks in pairs]
