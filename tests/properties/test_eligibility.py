"""Property-based tests for node eligibility and taint filtering."""

from datetime import datetime, timedelta, timezone

from hypothesis import given
from hypothesis import strategies as st

from taint_reconciler.models.config import UNREGISTERED_TAINT_KEY
from taint_reconciler.models.node import Node, NodeCondition, NodeTaint
from taint_reconciler.reconciler import is_stably_ready, without_taint

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
WINDOW = timedelta(minutes=1)

taint_keys = st.sampled_from(
    ["nvidia.com/gpu", "spot", "dedicated", "node.kubernetes.io/not-ready", UNREGISTERED_TAINT_KEY]
)


@st.composite
def taint(draw):
    return NodeTaint(
        key=draw(taint_keys),
        value=draw(st.sampled_from(["", "true", "infra"])),
        effect=draw(st.sampled_from(["NoSchedule", "PreferNoSchedule", "NoExecute"])),
    )


def ready_node(status: str, ready_for: timedelta) -> Node:
    return Node(
        name="node-a",
        conditions=[
            NodeCondition(type="Ready", status=status, last_transition_time=NOW - ready_for)
        ],
    )


@given(taints=st.lists(taint(), max_size=8))
def test_filter_removes_only_the_marker(taints):
    """The result is the input with marker entries dropped, order preserved."""
    result = without_taint(taints, UNREGISTERED_TAINT_KEY)

    assert all(t.key != UNREGISTERED_TAINT_KEY for t in result)
    assert result == [t for t in taints if t.key != UNREGISTERED_TAINT_KEY]


@given(taints=st.lists(taint(), max_size=8))
def test_filter_is_idempotent(taints):
    once = without_taint(taints, UNREGISTERED_TAINT_KEY)

    assert without_taint(once, UNREGISTERED_TAINT_KEY) == once


@given(before=st.lists(taint(), max_size=4), after=st.lists(taint(), max_size=4))
def test_surrounding_taints_keep_relative_order(before, after):
    marker = NodeTaint(key=UNREGISTERED_TAINT_KEY, effect="NoExecute")
    others_before = [t for t in before if t.key != UNREGISTERED_TAINT_KEY]
    others_after = [t for t in after if t.key != UNREGISTERED_TAINT_KEY]

    result = without_taint(others_before + [marker] + others_after, UNREGISTERED_TAINT_KEY)

    assert result == others_before + others_after


@given(seconds=st.integers(min_value=61, max_value=10**7))
def test_ready_longer_than_window_is_stable(seconds):
    assert is_stably_ready(ready_node("True", timedelta(seconds=seconds)), NOW, WINDOW)


@given(seconds=st.integers(min_value=-3600, max_value=60))
def test_ready_within_window_is_not_stable(seconds):
    assert not is_stably_ready(ready_node("True", timedelta(seconds=seconds)), NOW, WINDOW)


@given(
    status=st.sampled_from(["False", "Unknown"]),
    seconds=st.integers(min_value=0, max_value=10**7),
)
def test_not_ready_is_never_stable(status, seconds):
    assert not is_stably_ready(ready_node(status, timedelta(seconds=seconds)), NOW, WINDOW)


def test_other_conditions_do_not_count_as_ready():
    node = Node(
        name="node-a",
        conditions=[
            NodeCondition(
                type="MemoryPressure", status="True", last_transition_time=NOW - timedelta(days=1)
            )
        ],
    )

    assert not is_stably_ready(node, NOW, WINDOW)


def test_ready_without_transition_time_is_not_stable():
    node = Node(name="node-a", conditions=[NodeCondition(type="Ready", status="True")])

    assert not is_stably_ready(node, NOW, WINDOW)


def test_naive_transition_time_is_treated_as_utc():
    naive = (NOW - timedelta(minutes=5)).replace(tzinfo=None)
    node = Node(
        name="node-a",
        conditions=[NodeCondition(type="Ready", status="True", last_transition_time=naive)],
    )

    assert is_stably_ready(node, NOW, WINDOW)
