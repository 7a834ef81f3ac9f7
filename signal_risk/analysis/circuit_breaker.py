"""Per-purpose circuit breaker for model calls.

Each call purpose (triage, analysis, weighting, discovery, batch) gets its
own breaker. After ``failure_threshold`` consecutive failures the purpose is
short-circuited for ``recovery_timeout`` seconds: calls raise
``CircuitOpenError`` immediately and every caller takes its fallback
(keyword confidence, neutral weighting, no discovery) without waiting out
another timeout. The first call after the cool-down is a probe.

Exceptions listed in ``ignore`` (a missing API key, for example) pass
through without counting as failures.
"""

import enum
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from signal_risk.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised instead of calling a purpose whose circuit is open."""

    def __init__(self, purpose: str, retry_after: float) -> None:
        super().__init__(
            f"Model calls for {purpose} are suspended for another {retry_after:.1f}s"
        )
        self.purpose = purpose
        self.retry_after = retry_after


class CircuitBreaker:
    """
    Short-circuit one model call purpose after repeated failures.

    Args:
        purpose: Call purpose, used in errors, logs and the metrics label
        failure_threshold: Consecutive failures that open the circuit
        recovery_timeout: Seconds to wait before a probe call
        ignore: Exception types that are re-raised without counting
        clock: Monotonic time source
    """

    def __init__(
        self,
        purpose: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        ignore: tuple[type[BaseException], ...] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.purpose = purpose
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._ignore = ignore
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def retry_after(self) -> float:
        """Seconds until a probe is allowed (0 unless open)."""
        if self._state != CircuitState.OPEN:
            return 0.0
        return max(self._recovery_timeout - (self._clock() - self._opened_at), 0.0)

    def _transition(self, state: CircuitState, reason: str) -> None:
        previous, self._state = self._state, state
        if state == CircuitState.OPEN:
            self._opened_at = self._clock()
        get_metrics().set_circuit_open(self.purpose, state == CircuitState.OPEN)
        log = logger.warning if state == CircuitState.OPEN else logger.info
        log(f"Circuit for {self.purpose}: {previous.value} -> {state.value} ({reason})")

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Await ``fn(*args, **kwargs)`` unless the circuit is open.

        Raises:
            CircuitOpenError: While the circuit is open and cooling down.
        """
        if self._state == CircuitState.OPEN:
            remaining = self.retry_after
            if remaining > 0:
                raise CircuitOpenError(self.purpose, remaining)
            self._transition(CircuitState.HALF_OPEN, "probing")

        try:
            result = await fn(*args, **kwargs)
        except self._ignore:
            raise
        except Exception:
            self._failures += 1
            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN, "probe failed")
            elif self._failures >= self._failure_threshold:
                self._transition(CircuitState.OPEN, f"{self._failures} consecutive failures")
            raise

        self._failures = 0
        if self._state != CircuitState.CLOSED:
            self._transition(CircuitState.CLOSED, "probe succeeded")
        return result
