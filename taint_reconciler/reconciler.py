"""Removal of the unregistered taint from stably ready nodes.

Each call to :meth:`TaintReconciler.reconcile` is an independent pass: it
lists the registered nodes, picks those that still carry the unregistered
taint and whose Ready condition has held long enough, and patches the taint
away. Nothing is remembered between passes.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from taint_reconciler.exceptions import CancelledError, TaintReconcilerError, UpdateError
from taint_reconciler.logging_config import get_logger
from taint_reconciler.models.config import ReconcilerConfig
from taint_reconciler.models.node import Node, NodeTaint
from taint_reconciler.models.result import NodeOutcome, ReconcileResult
from taint_reconciler.retry import Backoff, retry_on_conflict
from taint_reconciler.store import NodeStore

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def has_unregistered_taint(node: Node, taint_key: str) -> bool:
    """Return True if the node carries the unregistered taint."""
    return node.has_taint(taint_key)


def is_stably_ready(node: Node, now: datetime, window: timedelta) -> bool:
    """Return True if Ready is True and has been for longer than ``window``."""
    condition = node.ready_condition()
    if condition is None or not condition.is_true:
        return False
    if condition.last_transition_time is None:
        return False
    return now - condition.last_transition_time > window


def without_taint(taints: list[NodeTaint], taint_key: str) -> list[NodeTaint]:
    """Return ``taints`` minus every entry keyed ``taint_key``, order kept."""
    return [taint for taint in taints if taint.key != taint_key]


class TaintReconciler:
    """Strips the unregistered taint from registered, stably ready nodes."""

    def __init__(
        self,
        store: NodeStore,
        config: ReconcilerConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], object] | None = None,
        backoff: Backoff | None = None,
        stop_event: threading.Event | None = None,
    ):
        """Initialize the reconciler.

        Args:
            store: Node store used for listing, reading and patching
            config: Reconciler settings, defaults when omitted
            clock: Returns the current time as an aware datetime
            sleep: Used between conflicting update attempts, defaults to waiting on
                ``stop_event`` so a stop request cuts the wait short
            backoff: Retry policy, built from ``config.backoff`` when omitted
            stop_event: Once set, the running pass ends before the next node or retry
        """
        self.store = store
        self.config = config or ReconcilerConfig()
        self.clock = clock
        self.stop_event = stop_event or threading.Event()
        self.sleep = sleep or self.stop_event.wait
        self.backoff = backoff or Backoff(self.config.backoff)

    @property
    def taint_key(self) -> str:
        return self.config.unregistered_taint_key

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.config.stabilization_window_seconds)

    def is_eligible(self, node: Node, now: datetime | None = None) -> bool:
        """Return True if the node's unregistered taint should be removed now."""
        if not has_unregistered_taint(node, self.taint_key):
            return False
        return is_stably_ready(node, now or self.clock(), self.window)

    def reconcile(self) -> ReconcileResult:
        """Run one pass over all registered nodes.

        Returns:
            ReconcileResult listing removed, skipped and failed nodes

        Raises:
            ListError: If the candidate nodes cannot be listed
        """
        nodes = self.store.list_nodes(self.config.registered_label_key)
        result = ReconcileResult(requeue_after_seconds=self.config.interval_seconds)

        for index, node in enumerate(nodes):
            if self.stop_event.is_set():
                result.aborted.extend(n.name for n in nodes[index:])
                logger.info(f"Stop requested, abandoning {len(result.aborted)} nodes")
                break

            if not self.is_eligible(node):
                logger.debug("Skipping node, not eligible", extra={"node": node.name})
                result.skipped.append(node.name)
                continue

            try:
                removed = self._remove_taint(node)
            except CancelledError:
                result.aborted.extend(n.name for n in nodes[index:])
                logger.info(
                    f"Stop requested, abandoning {len(result.aborted)} nodes",
                    extra={"node": node.name},
                )
                break
            except TaintReconcilerError as e:
                attempts = e.attempts if isinstance(e, UpdateError) else 0
                logger.error(
                    f"Failed to remove unregistered taint: {e.message}",
                    extra={"node": node.name},
                )
                result.failed.append(
                    NodeOutcome(name=node.name, error=e.message, attempts=attempts)
                )
                continue
            except Exception as e:
                logger.error(
                    f"Unexpected error removing unregistered taint: {e}",
                    exc_info=True,
                    extra={"node": node.name},
                )
                result.failed.append(NodeOutcome(name=node.name, error=str(e)))
                continue

            if removed:
                logger.info("Removed unregistered taint from node", extra={"node": node.name})
                result.removed.append(node.name)
            else:
                result.skipped.append(node.name)

        logger.info(f"Reconcile pass complete: {result.summary()}")
        return result

    def _remove_taint(self, listed: Node) -> bool:
        """Patch the unregistered taint off one node, retrying on conflicts.

        The listed snapshot is used for the first attempt; every retry
        re-reads the node and re-checks eligibility before patching.

        Returns:
            True if a patch was applied, False if there was nothing to do
        """
        snapshots = iter([listed])

        def attempt() -> bool:
            node = next(snapshots, None) or self.store.get_node(listed.name)
            if not self.is_eligible(node):
                logger.debug("Node no longer eligible, nothing to do", extra={"node": node.name})
                return False
            taints = without_taint(node.taints, self.taint_key)
            self.store.patch_node_taints(node.name, node.resource_version, taints)
            return True

        return retry_on_conflict(
            self.backoff, attempt, sleep=self.sleep, stop_event=self.stop_event
        )
