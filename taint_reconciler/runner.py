"""Periodic driver for the taint reconciler."""

import threading

from taint_reconciler.exceptions import ListError
from taint_reconciler.logging_config import get_logger
from taint_reconciler.models.result import ReconcileResult
from taint_reconciler.reconciler import TaintReconciler

logger = get_logger(__name__)


class ReconcileLoop:
    """Runs reconcile passes on a fixed cadence, one at a time.

    A pass can also be requested early with :meth:`trigger`. Triggers that
    arrive while a pass is running collapse into a single follow-up pass.
    The loop stops through the reconciler's ``stop_event``, so :meth:`stop`
    also cuts short a pass that is already running.
    """

    def __init__(self, reconciler: TaintReconciler, interval_seconds: float | None = None):
        """Initialize the loop.

        Args:
            reconciler: Reconciler to drive
            interval_seconds: Delay after a failed pass, defaults to the reconciler's interval
        """
        self.reconciler = reconciler
        self.interval_seconds = interval_seconds or reconciler.config.interval_seconds
        self.passes = 0
        self._wake = threading.Event()
        self._stopped = reconciler.stop_event
        self._pass_lock = threading.Lock()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def trigger(self) -> None:
        """Request a pass as soon as the current one (if any) finishes."""
        self._wake.set()

    def stop(self) -> None:
        """Ask the loop and any running pass to exit; returns immediately."""
        self._stopped.set()
        self._wake.set()

    def run_once(self) -> ReconcileResult:
        """Run a single pass.

        Raises:
            ListError: If the candidate nodes cannot be listed
        """
        with self._pass_lock:
            self.passes += 1
            return self.reconciler.reconcile()

    def run(self) -> None:
        """Run passes until :meth:`stop` is called."""
        logger.info(f"Starting reconcile loop, interval {self.interval_seconds}s")

        while not self.stopped:
            self._wake.clear()
            delay = self.interval_seconds
            try:
                result = self.run_once()
                delay = result.requeue_after_seconds
            except ListError as e:
                logger.error(f"Reconcile pass aborted: {e.message}")
                if e.details:
                    logger.debug(e.details)

            if self.stopped:
                break
            self._wake.wait(delay)

        logger.info("Reconcile loop stopped")
