"""Metrics Protocol - Interface for metrics collection without concrete dependency

Lets the voting core count votes and rejections without importing the
server module; tests and the CLI run with NullMetrics.
"""

from typing import Any, Protocol


class LabeledCounter(Protocol):
    def labels(self, **kwargs: Any) -> "LabeledCounter": ...
    def inc(self, amount: float = 1) -> None: ...


class MetricsCollector(Protocol):
    """Metrics consumed by the voting core

    Used by:
    - voting/guard.py - accepted votes and rejections by reason
    - voting/results.py - tally computations
    """

    votes_cast: LabeledCounter
    vote_rejections: LabeledCounter
    tallies_computed: LabeledCounter

    def record_error(self, component: str, error: Exception) -> None: ...


class _NullCounter:
    def labels(self, **kwargs: Any) -> "_NullCounter":
        return self

    def inc(self, amount: float = 1) -> None:
        pass


class NullMetrics:
    """No-op metrics for testing or standalone use"""

    def __init__(self):
        self.votes_cast = _NullCounter()
        self.vote_rejections = _NullCounter()
        self.tallies_computed = _NullCounter()

    def record_error(self, component: str, error: Exception) -> None:
        pass
