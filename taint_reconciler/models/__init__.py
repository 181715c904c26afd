"""Data models for nodes, configuration and reconcile results."""

from taint_reconciler.models.config import BackoffConfig, ReconcilerConfig
from taint_reconciler.models.node import Node, NodeCondition, NodeTaint
from taint_reconciler.models.result import NodeOutcome, ReconcileResult

__all__ = [
    "Node",
    "NodeCondition",
    "NodeTaint",
    "BackoffConfig",
    "ReconcilerConfig",
    "NodeOutcome",
    "ReconcileResult",
]
