"""
Reliability Utilities.

Circuit breaker guarding calls to the identity provider's admin API, so an
outage there fails admin requests fast instead of piling up timeouts.
"""

import logging
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger("nexachain.reliability")


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    After `failure_threshold` failures in a row the circuit OPENs and rejects
    calls for `reset_timeout` seconds. The next call after that runs as a
    HALF_OPEN trial: success closes the circuit, failure re-opens it.

    Only exceptions matching `counted` are failures; anything else propagates
    without touching the state.
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        reset_timeout: float = 60,
        counted: Tuple[Type[BaseException], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.counted = counted
        self._clock = clock
        self.failures = 0
        self.opened_at = 0.0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        if self.state == "OPEN":
            if self._clock() - self.opened_at >= self.reset_timeout:
                self.state = "HALF_OPEN"
            else:
                raise CircuitOpenError(f"Circuit '{self.name}' is OPEN")

        try:
            result = await func(*args, **kwargs)
        except self.counted:
            self.record_failure()
            raise

        self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning("Circuit opened", extra={"circuit": self.name, "failures": self.failures})
            self.state = "OPEN"
            self.opened_at = self._clock()

    def reset_state(self):
        if self.state != "CLOSED":
            logger.info("Circuit closed", extra={"circuit": self.name})
        self.failures = 0
        self.state = "CLOSED"
