"""Retry-on-conflict combinator for optimistic node updates."""

import random
import threading
import time
from collections.abc import Callable, Iterator
from typing import TypeVar

from taint_reconciler.exceptions import CancelledError, ConflictError, UpdateError
from taint_reconciler.logging_config import get_logger
from taint_reconciler.models.config import BackoffConfig

logger = get_logger(__name__)

T = TypeVar("T")


class Backoff:
    """Exponential backoff with jitter and a hard cap on attempts."""

    def __init__(self, config: BackoffConfig | None = None, rng: random.Random | None = None):
        self.config = config or BackoffConfig()
        self._rng = rng or random.Random()

    @property
    def steps(self) -> int:
        return self.config.steps

    def delays(self) -> Iterator[float]:
        """Yield the sleep before each retry, one fewer than ``steps``."""
        duration = self.config.duration_seconds
        for _ in range(self.config.steps - 1):
            delay = duration
            if self.config.jitter > 0:
                delay += self._rng.uniform(0, self.config.jitter * delay)
            yield min(delay, self.config.cap_seconds)
            duration *= self.config.factor


def retry_on_conflict(
    backoff: Backoff,
    fn: Callable[[], T],
    sleep: Callable[[float], object] = time.sleep,
    stop_event: threading.Event | None = None,
) -> T:
    """Call ``fn`` until it stops raising ConflictError or attempts run out.

    Any other exception propagates immediately. Once ``stop_event`` is set no
    further attempt is made.

    Raises:
        UpdateError: If every attempt ended in a conflict
        CancelledError: If ``stop_event`` was set between attempts
    """
    delays = backoff.delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except ConflictError as e:
            delay = next(delays, None)
            if delay is None:
                raise UpdateError(
                    f"Gave up after {attempt} conflicting attempts",
                    e.message,
                    node=e.node,
                    attempts=attempt,
                ) from e
            if stop_event is not None and stop_event.is_set():
                raise CancelledError(e.node, attempts=attempt) from e
            logger.debug(
                f"Conflict on attempt {attempt}/{backoff.steps}, retrying in {delay:.3f}s",
                extra={"node": e.node},
            )
            sleep(delay)
            if stop_event is not None and stop_event.is_set():
                raise CancelledError(e.node, attempts=attempt) from e
