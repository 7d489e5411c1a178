"""Result types for apply and prune runs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .identity import ObjMetadata


class Action(str, Enum):
    """What the orchestrator does with each resource."""

    APPLY = "apply"
    PRUNE = "prune"


class ResourceStatus(str, Enum):
    """Terminal outcome of one resource."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ResourceResult:
    """
    Result of processing a single resource.

    Attributes:
        identity: Resource the result is for
        action: Apply or prune
        status: Terminal outcome
        layer: Index of the layer (in creation order) holding the resource
        error_message: Error details if failed, reason if skipped
        duration_ms: Handler duration in milliseconds
    """

    identity: ObjMetadata
    action: Action
    status: ResourceStatus
    layer: int
    error_message: str | None = None
    duration_ms: float | None = None

    @property
    def success(self) -> bool:
        return self.status == ResourceStatus.SUCCEEDED


@dataclass
class RunReport:
    """
    Overall result of an apply or prune run.

    Attributes:
        action: Apply or prune
        results: Per-resource results in execution order
        layers_completed: Number of layers that ran to completion
        aborted: True if a failure stopped the run before the last layer
        duration_seconds: Total duration in seconds
        started_at: Start timestamp
        completed_at: Completion timestamp
    """

    action: Action
    results: list[ResourceResult] = field(default_factory=list)
    layers_completed: int = 0
    aborted: bool = False
    duration_seconds: float = 0.0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def _count(self, status: ResourceStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(ResourceStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(ResourceStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(ResourceStatus.SKIPPED)

    @property
    def is_complete_success(self) -> bool:
        """
        Check if every resource succeeded.

        Returns:
            bool: True if no failures and no skipped resources, False otherwise.
        """
        return self.failed == 0 and self.skipped == 0

    def get_summary(self) -> str:
        """
        Get a human-readable summary.

        Returns:
            str: Summary string with action and counts.
        """
        return (
            f"{self.action.value}: "
            f"{self.succeeded}/{len(self.results)} succeeded, "
            f"{self.failed} failed, {self.skipped} skipped"
        )
