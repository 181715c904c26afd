"""Data models describing the outcome of a reconcile pass."""

from pydantic import BaseModel, Field


class NodeOutcome(BaseModel):
    """A node the pass failed to update."""

    name: str
    error: str
    attempts: int = 0


class ReconcileResult(BaseModel):
    """Summary of one reconcile pass."""

    removed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[NodeOutcome] = Field(default_factory=list)
    aborted: list[str] = Field(default_factory=list)
    requeue_after_seconds: float

    @property
    def cancelled(self) -> bool:
        return bool(self.aborted)

    @property
    def failed_names(self) -> list[str]:
        return [outcome.name for outcome in self.failed]

    def summary(self) -> str:
        """One-line summary for logging."""
        return (
            f"removed={len(self.removed)} skipped={len(self.skipped)} "
            f"failed={len(self.failed)} aborted={len(self.aborted)} "
            f"requeue_after={self.requeue_after_seconds}s"
        )
