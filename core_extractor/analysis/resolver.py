"""Transitive inclusion resolution.

A package is included only if its own files are all licensed and every
package it depends on, directly or transitively, is included. The status of
each node is computed as a fixpoint over the dependency graph:

1. Nodes whose own files are licensed start as included; all other nodes,
   including external unknowns, start as unlicensed.
2. Edges are swept in sorted order. An included node with a dependency that
   is not included is downgraded to blocked_by_dependency.
3. Sweeps repeat until one changes nothing.

Statuses only ever move down (included -> blocked), so the process ends after
at most one changing sweep per node. Cycles need no special handling: a fully
licensed cycle stays included, and a cycle with an unlicensed member blocks
the rest of the cycle.
"""

import logging
from typing import Mapping, NamedTuple

from pydantic import BaseModel, Field

from core_extractor.models.graph import DependencyGraph
from core_extractor.models.verdict import PackageStatus, PackageVerdict

logger = logging.getLogger(__name__)


class Downgrade(NamedTuple):
    """One status change made during resolution."""

    node_id: str
    previous: PackageStatus
    status: PackageStatus
    cause: str


class ResolutionOutcome(BaseModel):
    """Final verdicts plus the trace of how they were reached."""

    model_config = {"extra": "forbid"}

    verdicts: dict[str, PackageVerdict] = Field(default_factory=dict)
    passes: int = Field(default=0, ge=0, description="Sweeps that changed a status")
    downgrades: list[Downgrade] = Field(
        default_factory=list, description="Status changes in the order made"
    )

    def status_of(self, node_id: str) -> PackageStatus:
        return self.verdicts[node_id].status


def resolve_inclusion(
    graph: DependencyGraph,
    own_files_licensed: Mapping[str, bool],
) -> ResolutionOutcome:
    """Compute the final status of every node of the graph.

    Pure and deterministic: the same graph and verdicts always produce the
    same outcome, whatever order they were built in.

    Args:
        graph: Dependency graph. May contain cycles.
        own_files_licensed: Whether each discovered node's own files are all
            licensed. Nodes missing from the mapping (external unknowns) are
            treated as unlicensed.

    Returns:
        ResolutionOutcome with a verdict for every node.
    """
    licensed: dict[str, bool] = {
        node_id: bool(own_files_licensed.get(node_id, False))
        and not graph.nodes[node_id].external
        for node_id in graph.nodes
    }
    status: dict[str, PackageStatus] = {
        node_id: PackageStatus.INCLUDED if is_licensed else PackageStatus.UNLICENSED
        for node_id, is_licensed in licensed.items()
    }

    edges = list(graph.iter_edges())
    downgrades: list[Downgrade] = []
    passes = 0

    while True:
        changed = False
        for source, target in edges:
            if (
                status[source] == PackageStatus.INCLUDED
                and status[target] != PackageStatus.INCLUDED
            ):
                downgrades.append(
                    Downgrade(
                        node_id=source,
                        previous=PackageStatus.INCLUDED,
                        status=PackageStatus.BLOCKED_BY_DEPENDENCY,
                        cause=target,
                    )
                )
                status[source] = PackageStatus.BLOCKED_BY_DEPENDENCY
                changed = True
        if not changed:
            break
        passes += 1

    verdicts: dict[str, PackageVerdict] = {}
    for node_id in sorted(graph.nodes):
        blocking: list[str] = []
        if status[node_id] == PackageStatus.BLOCKED_BY_DEPENDENCY:
            blocking = [
                dep
                for dep in graph.successors(node_id)
                if status[dep] != PackageStatus.INCLUDED
            ]
        verdicts[node_id] = PackageVerdict(
            own_files_licensed=licensed[node_id],
            status=status[node_id],
            blocking_dependencies=blocking,
        )

    logger.debug(
        "Resolved %d nodes in %d changing passes (%d downgrades)",
        len(verdicts),
        passes,
        len(downgrades),
    )
    return ResolutionOutcome(verdicts=verdicts, passes=passes, downgrades=downgrades)
