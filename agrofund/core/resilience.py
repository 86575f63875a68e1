"""
Circuit breaker guarding the database.

Every repository call goes through ``db_circuit_breaker.call``.  When the
database stops answering, ``CB_FAILURE_THRESHOLD`` consecutive connection
failures open the circuit; from then on requests get an immediate 503
(:class:`CircuitBreakerError`, see ``core.exceptions``) instead of piling up
on an exhausted pool.

States:
- CLOSED    → Calls go through; connection failures are counted.
- OPEN      → Calls are refused until ``recovery_timeout`` has elapsed.
- HALF_OPEN → Exactly one probe call is let through.  Success closes the
              circuit, failure re-opens it; concurrent callers are refused
              while the probe runs.

Only failures the classifier recognises as connection trouble count;
constraint violations and domain exceptions propagate untouched.  No call
is ever retried here.
"""

import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from agrofund.core.config import settings

logger = logging.getLogger(__name__)

FailureClassifier = Callable[[BaseException], bool]


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """A call was refused without touching the database."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is OPEN; retry in {retry_after:.1f}s")


def is_connection_failure(exc: BaseException) -> bool:
    """
    True for errors that mean "the database is unreachable".

    SQLAlchemy reports a dropped connection either as ``OperationalError`` /
    ``InterfaceError`` or as any ``DBAPIError`` flagged
    ``connection_invalidated``; socket-level errors can also escape the
    driver directly.
    """
    if isinstance(exc, (ConnectionError, TimeoutError, OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


class CircuitBreaker:
    """
    Async circuit breaker.

    ``is_failure`` decides which exceptions count against the circuit; the
    default counts every exception.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        is_failure: Optional[FailureClassifier] = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._is_failure: FailureClassifier = is_failure or (lambda exc: True)
        self.reset()

    def reset(self) -> None:
        """Back to a fresh CLOSED circuit with zeroed counters."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = 0.0
        self._probe_in_flight = False

    # ── State ──

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._seconds_until_probe() <= 0:
            self._move_to(CircuitState.HALF_OPEN)
        return self._state

    def _seconds_until_probe(self) -> float:
        return self.recovery_timeout - (time.monotonic() - self._last_failure_time)

    def _move_to(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        log = logger.error if new_state == CircuitState.OPEN else logger.info
        log(
            "Circuit '%s': %s → %s (failures=%d)",
            self.name,
            self._state.value,
            new_state.value,
            self._failure_count,
        )
        self._state = new_state

    def _on_success(self) -> None:
        self._failure_count = 0
        self._success_count += 1
        self._move_to(CircuitState.CLOSED)

    def _on_failure(self, exc: BaseException) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._move_to(CircuitState.OPEN)
        else:
            logger.warning(
                "Circuit '%s' failure %d/%d: %s",
                self.name,
                self._failure_count,
                self.failure_threshold,
                exc,
            )

    # ── Calls ──

    async def call(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """
        Await ``func(*args, **kwargs)`` unless the circuit refuses it.

        Raises :class:`CircuitBreakerError` while OPEN, and while HALF_OPEN
        if another caller already holds the probe.
        """
        state = self.state
        if state == CircuitState.OPEN:
            raise CircuitBreakerError(self.name, max(self._seconds_until_probe(), 0.0))

        probing = state == CircuitState.HALF_OPEN
        if probing:
            if self._probe_in_flight:
                raise CircuitBreakerError(self.name, 0.0)
            self._probe_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except Exception as exc:
            if self._is_failure(exc):
                self._on_failure(exc)
            raise
        else:
            self._on_success()
            return result
        finally:
            if probing:
                self._probe_in_flight = False

    def get_status(self) -> dict:
        """Snapshot for ``/health``."""
        state = self.state
        return {
            "name": self.name,
            "state": state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "success_count": self._success_count,
            "recovery_timeout_s": self.recovery_timeout,
            "retry_after_s": (
                round(max(self._seconds_until_probe(), 0.0), 1)
                if state == CircuitState.OPEN
                else 0.0
            ),
        }


db_circuit_breaker = CircuitBreaker(
    name="database",
    failure_threshold=settings.CB_FAILURE_THRESHOLD,
    recovery_timeout=settings.CB_RECOVERY_TIMEOUT,
    is_failure=is_connection_failure,
)
