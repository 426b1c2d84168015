from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from .errors import ConfigurationError, TaskError
from .logging import get_logger


@dataclass
class TaskSpec:
    name: str
    deps: list[str] = field(default_factory=list)
    fn: Callable[[Any], None] | None = None

    def __post_init__(self) -> None:
        # Duplicate prerequisites collapse onto their first occurrence
        self.deps = list(dict.fromkeys(self.deps))


def task(name: str, deps: Iterable[str] = ()):
    """Decorator to declare a build task on a function.

    The wrapped function receives a single `ctx` (the BuildContext) once every
    task in `deps` has completed.
    """

    def deco(fn: Callable[[Any], None]):
        spec = TaskSpec(name=name, deps=list(deps), fn=fn)
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


def topo_sort(nodes: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[str]:
    nodes = list(nodes)
    incoming = {n: set() for n in nodes}
    outgoing = {n: set() for n in nodes}
    for u, v in edges:
        if u not in incoming or v not in incoming:
            raise ConfigurationError(f"Edge references unknown task: {(u, v)}")
        outgoing[u].add(v)
        incoming[v].add(u)
    ordered: list[str] = []
    roots = [n for n in nodes if not incoming[n]]
    while roots:
        n = roots.pop()
        ordered.append(n)
        for m in list(outgoing[n]):
            incoming[m].discard(n)
            outgoing[n].discard(m)
            if not incoming[m]:
                roots.append(m)
    cyclic = sorted(n for n in nodes if incoming[n])
    if cyclic:
        raise ConfigurationError("Cycle detected in task graph: " + ", ".join(cyclic))
    return ordered


class TaskGraph:
    """Named tasks with prerequisite lists, validated as a DAG."""

    def __init__(self, name: str = "themepipe"):
        self.name = name
        self.tasks: dict[str, TaskSpec] = {}
        self.order: list[str] | None = None
        self.logger = get_logger(f"themepipe.graph.{self.name}")

    @classmethod
    def from_specs(cls, specs: Iterable[TaskSpec], name: str = "themepipe") -> "TaskGraph":
        graph = cls(name=name)
        for spec in specs:
            graph.register(spec)
        graph.validate()
        return graph

    def register(self, spec: TaskSpec) -> None:
        if spec.name in self.tasks:
            raise ConfigurationError(f"Task already registered: {spec.name}")
        self.tasks[spec.name] = spec
        self.order = None

    def edges(self) -> list[tuple[str, str]]:
        return [(dep, name) for name, spec in self.tasks.items() for dep in spec.deps]

    def validate(self) -> list[str]:
        if self.order is None:
            for name, spec in self.tasks.items():
                missing = [d for d in spec.deps if d not in self.tasks]
                if missing:
                    raise ConfigurationError(
                        f"Task '{name}' depends on unknown task(s): {', '.join(missing)}"
                    )
            self.order = topo_sort(self.tasks.keys(), self.edges())
        return self.order

    def run(self, name: str, ctx: Any = None) -> list[str]:
        """Run `name` after its transitive prerequisites, each exactly once.

        Returns the names of the executed tasks in execution order. The first
        failure stops the run; tasks not yet started are never started.
        """
        return self.run_many([name], ctx)

    def run_many(self, names: Iterable[str], ctx: Any = None) -> list[str]:
        self.validate()
        names = list(names)
        for name in names:
            if name not in self.tasks:
                raise KeyError(f"Unknown task: {name}")
        self.logger.info("Selected tasks: %s", ", ".join(names))
        done: list[str] = []
        seen: set[str] = set()
        for name in names:
            self._visit(name, ctx, seen, done)
        return done

    def _visit(self, name: str, ctx: Any, seen: set[str], done: list[str]) -> None:
        if name in seen:
            return
        seen.add(name)
        spec = self.tasks[name]
        for dep in spec.deps:
            self._visit(dep, ctx, seen, done)
        if spec.fn is not None:
            step_logger = get_logger(f"themepipe.task.{name}")
            step_logger.info("Run: %s", name)
            try:
                spec.fn(ctx)
            except TaskError:
                raise
            except Exception as e:  # noqa: BLE001
                step_logger.error("Task failed (%s): %s", name, e)
                raise TaskError(name, str(e)) from e
        done.append(name)
