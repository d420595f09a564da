"""Deterministic fault injection for resilience testing."""

import threading
from typing import Protocol

from prometheus_client import Counter

from nws_proxy.services.errors import InjectedFault

# Metrics
injected_faults = Counter(
    "nws_injected_faults_total",
    "Total synthetic upstream failures raised by fault injection",
)


class FaultInjector(Protocol):
    """Decides whether an upstream attempt should fail before it is issued."""

    @property
    def attempts(self) -> int:
        """Number of attempts counted so far."""
        ...

    def before_attempt(self, target: str) -> None:
        """Count one attempt and raise InjectedFault if it must fail."""
        ...


class PeriodicFaultInjector:
    """Fails every ``every``-th attempt.

    The counter is incremented before the decision is made, so it counts
    attempts rather than successes. It only ever grows.
    """

    def __init__(self, every: int = 5, start: int = 0) -> None:
        if every < 1:
            raise ValueError("every must be at least 1")
        self._every = every
        self._count = start
        self._lock = threading.Lock()

    @property
    def attempts(self) -> int:
        return self._count

    def before_attempt(self, target: str) -> None:
        with self._lock:
            self._count += 1
            attempt = self._count

        if attempt % self._every == 0:
            injected_faults.inc()
            raise InjectedFault(
                f"Injected fault on attempt {attempt} fetching forecast for {target}",
                attempt,
            )


class NoFaultInjector:
    """Counts attempts but never fails them."""

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    @property
    def attempts(self) -> int:
        return self._count

    def before_attempt(self, target: str) -> None:
        with self._lock:
            self._count += 1


def create_fault_injector(every: int) -> FaultInjector:
    """Build the injector for a configured period (0 disables injection)."""
    if every <= 0:
        return NoFaultInjector()
    return PeriodicFaultInjector(every=every)
