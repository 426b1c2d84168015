"""Build task modules live here.

Each module declares its tasks with `@orchestrator.task(name=..., deps=[...])`;
the CLI imports every module in this package and collects them.
"""
