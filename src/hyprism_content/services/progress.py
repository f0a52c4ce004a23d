"""Shared progress callback type for long-running services."""

from collections.abc import Callable

# (percent 0-100, human-readable message)
ProgressCallback = Callable[[float, str], None]


def noop_progress(_pct: float, _msg: str) -> None:
    pass
