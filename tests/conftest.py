"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import Verbosity, settings

from taint_reconciler.exceptions import ConflictError, ListError, UpdateError
from taint_reconciler.models.config import (
    REGISTERED_LABEL_KEY,
    UNREGISTERED_TAINT_KEY,
    BackoffConfig,
    ReconcilerConfig,
)
from taint_reconciler.models.node import Node, NodeCondition, NodeTaint

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeNodeStore:
    """In-memory NodeStore with injectable conflicts and failures."""

    def __init__(self, nodes=()):
        self.nodes: dict[str, Node] = {}
        self.conflicts: dict[str, int] = {}
        self.failures: dict[str, Exception] = {}
        self.list_error: ListError | None = None
        self.patch_calls: list[str] = []
        self.get_calls: list[str] = []
        for node in nodes:
            self.add(node)

    def add(self, node: Node) -> None:
        self.nodes[node.name] = node.model_copy(
            update={"resource_version": node.resource_version or "1"}
        )

    def conflict_always(self, name: str) -> None:
        self.conflicts[name] = -1

    def list_nodes(self, label_selector: str) -> list[Node]:
        if self.list_error is not None:
            raise self.list_error
        return [n.model_copy(deep=True) for n in self.nodes.values() if label_selector in n.labels]

    def get_node(self, name: str) -> Node:
        self.get_calls.append(name)
        if name not in self.nodes:
            raise UpdateError(f"Node {name} no longer exists", node=name)
        return self.nodes[name].model_copy(deep=True)

    def patch_node_taints(self, name, resource_version, taints) -> Node:
        self.patch_calls.append(name)
        if name in self.failures:
            raise self.failures[name]

        remaining = self.conflicts.get(name, 0)
        if remaining:
            self.conflicts[name] = remaining - 1 if remaining > 0 else -1
            raise ConflictError(name, resource_version)

        current = self.nodes[name]
        if resource_version != current.resource_version:
            raise ConflictError(name, resource_version)

        updated = current.model_copy(
            update={
                "taints": list(taints),
                "resource_version": str(int(current.resource_version) + 1),
            }
        )
        self.nodes[name] = updated
        return updated.model_copy(deep=True)


def make_node(
    name: str,
    marked: bool = True,
    ready_for: timedelta | None = timedelta(minutes=5),
    registered: bool = True,
    ready_status: str = "True",
    extra_taints: list[NodeTaint] | None = None,
) -> Node:
    """Build a node; ``ready_for=None`` omits the Ready condition."""
    taints = list(extra_taints or [])
    if marked:
        taints.append(NodeTaint(key=UNREGISTERED_TAINT_KEY, effect="NoExecute"))

    conditions = []
    if ready_for is not None:
        conditions.append(
            NodeCondition(type="Ready", status=ready_status, last_transition_time=NOW - ready_for)
        )

    labels = {"kubernetes.io/hostname": name}
    if registered:
        labels[REGISTERED_LABEL_KEY] = "true"

    return Node(name=name, labels=labels, taints=taints, conditions=conditions)


@pytest.fixture
def fake_store():
    """Empty in-memory node store."""
    return FakeNodeStore()


@pytest.fixture
def node_factory():
    """Factory for test nodes relative to the fixed test clock."""
    return make_node


@pytest.fixture
def config():
    """Reconciler configuration with a fast, jitter-free backoff."""
    return ReconcilerConfig(backoff=BackoffConfig(steps=5, duration_seconds=0.01, jitter=0.0))


@pytest.fixture
def sleeps():
    """Records every backoff sleep instead of sleeping."""
    return []


@pytest.fixture
def reconciler(fake_store, config, sleeps):
    """TaintReconciler wired to the fake store and the fixed clock."""
    from taint_reconciler.reconciler import TaintReconciler

    return TaintReconciler(fake_store, config, clock=lambda: NOW, sleep=sleeps.append)


@pytest.fixture
def now():
    """The fixed time the test clock reports."""
    return NOW
