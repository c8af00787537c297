"""Comparison of two extraction results.

Runs share no state, so historical comparison is an explicit step over two
serialized results.
"""

from typing import Optional

from pydantic import BaseModel, Field

from core_extractor.models.result import ExtractionResult
from core_extractor.models.verdict import PackageStatus


class StatusChange(BaseModel):
    """A package whose status differs between two results."""

    model_config = {"extra": "forbid"}

    node_id: str = Field(description="Graph node identifier")
    previous: PackageStatus = Field(description="Status in the previous result")
    current: PackageStatus = Field(description="Status in the current result")

    @property
    def is_regression(self) -> bool:
        """True if the package lost its included status."""
        return (
            self.previous == PackageStatus.INCLUDED
            and self.current != PackageStatus.INCLUDED
        )


class ResultDiff(BaseModel):
    """Differences between two extraction results."""

    model_config = {"extra": "forbid"}

    added: list[str] = Field(default_factory=list, description="New node ids")
    removed: list[str] = Field(default_factory=list, description="Dropped node ids")
    changed: list[StatusChange] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    @property
    def regressions(self) -> list[StatusChange]:
        return [change for change in self.changed if change.is_regression]


def diff_results(
    previous: ExtractionResult,
    current: ExtractionResult,
    status_filter: Optional[PackageStatus] = None,
) -> ResultDiff:
    """Compare two results package by package.

    Args:
        previous: The older result.
        current: The newer result.
        status_filter: If set, only report status changes whose current
            status is this one.

    Returns:
        ResultDiff with sorted node ids.
    """
    before = {pkg.node_id: pkg.status for pkg in previous.packages}
    after = {pkg.node_id: pkg.status for pkg in current.packages}

    changed = [
        StatusChange(node_id=node_id, previous=before[node_id], current=after[node_id])
        for node_id in sorted(before.keys() & after.keys())
        if before[node_id] != after[node_id]
    ]
    if status_filter is not None:
        changed = [change for change in changed if change.current == status_filter]

    return ResultDiff(
        added=sorted(after.keys() - before.keys()),
        removed=sorted(before.keys() - after.keys()),
        changed=changed,
    )
