"""Timing helpers for pipeline log lines."""

import time

_UNITS = (
    (1_000_000_000, "s", 3),
    (1_000_000, "ms", 2),
    (1_000, "µs", 1),
)


class Timer:
    """Measures one stage of the pipeline with ``perf_counter_ns``."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns

    @property
    def elapsed(self) -> str:
        return format_ns(self.elapsed_ns)


def format_ns(ns: float) -> str:
    """Render a nanosecond duration in the largest unit that keeps it >= 1."""
    for scale, unit, places in _UNITS:
        if ns >= scale:
            return f"{ns / scale:.{places}f} {unit}"
    return f"{ns:.0f} ns"
