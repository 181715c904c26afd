"""Data models for the node state the reconciler reads and patches."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

READY_CONDITION = "Ready"


class NodeTaint(BaseModel):
    """Kubernetes node taint."""

    key: str
    value: str = ""
    effect: str  # NoSchedule, PreferNoSchedule, NoExecute
    time_added: datetime | None = None

    @field_validator("effect")
    @classmethod
    def validate_effect(cls, v: str) -> str:
        """Validate taint effect is one of the allowed values."""
        allowed = ["NoSchedule", "PreferNoSchedule", "NoExecute"]
        if v not in allowed:
            raise ValueError(f"effect must be one of {allowed}, got {v}")
        return v

    def to_api_dict(self) -> dict:
        """Convert to the dict form accepted by the Kubernetes API."""
        result = {"key": self.key, "effect": self.effect}
        if self.value:
            result["value"] = self.value
        if self.time_added is not None:
            result["timeAdded"] = self.time_added.isoformat()
        return result

    @classmethod
    def from_kubernetes(cls, taint) -> "NodeTaint":
        """Build from a ``kubernetes.client.V1Taint``."""
        return cls(
            key=taint.key,
            value=taint.value or "",
            effect=taint.effect,
            time_added=taint.time_added,
        )


class NodeCondition(BaseModel):
    """A single node status condition."""

    type: str
    status: str  # True, False, Unknown
    last_transition_time: datetime | None = None

    @field_validator("last_transition_time")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_true(self) -> bool:
        return self.status == "True"

    @classmethod
    def from_kubernetes(cls, condition) -> "NodeCondition":
        """Build from a ``kubernetes.client.V1NodeCondition``."""
        return cls(
            type=condition.type,
            status=condition.status,
            last_transition_time=condition.last_transition_time,
        )


class Node(BaseModel):
    """Snapshot of a cluster node as observed at one point in time."""

    name: str
    labels: dict[str, str] = Field(default_factory=dict)
    taints: list[NodeTaint] = Field(default_factory=list)
    conditions: list[NodeCondition] = Field(default_factory=list)
    resource_version: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate node name is not empty."""
        if not v:
            raise ValueError("name cannot be empty")
        return v

    def has_taint(self, key: str) -> bool:
        """Return True if any taint on the node uses ``key``."""
        return any(taint.key == key for taint in self.taints)

    def ready_condition(self) -> NodeCondition | None:
        """Return the Ready condition, if the node reports one."""
        return next((c for c in self.conditions if c.type == READY_CONDITION), None)

    @classmethod
    def from_kubernetes(cls, node) -> "Node":
        """Build from a ``kubernetes.client.V1Node``."""
        metadata = node.metadata
        spec = node.spec
        status = node.status

        taints = [NodeTaint.from_kubernetes(t) for t in (spec.taints if spec else None) or []]
        conditions = [
            NodeCondition.from_kubernetes(c) for c in (status.conditions if status else None) or []
        ]

        return cls(
            name=metadata.name,
            labels=metadata.labels or {},
            taints=taints,
            conditions=conditions,
            resource_version=metadata.resource_version,
        )
