"""Dependency graph construction from lock metadata."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from core_extractor.constants import UNKNOWN_VERSION
from core_extractor.discovery.lockfile import resolve_rewrite
from core_extractor.exceptions import GraphInconsistencyError
from core_extractor.models.config import ExtractorConfig
from core_extractor.models.graph import DependencyGraph, GraphNode
from core_extractor.models.package import LockDependency, Package
from core_extractor.models.result import IssueKind, RunIssue

logger = logging.getLogger(__name__)


class GraphBuildResult(BaseModel):
    """A dependency graph plus what the builder learned while making it."""

    model_config = {"extra": "forbid"}

    graph: DependencyGraph
    issues: list[RunIssue] = Field(default_factory=list)
    replaced_dependencies: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Rewritten dependencies (original name@version) per node",
    )
    replaced_by: dict[str, str] = Field(
        default_factory=dict,
        description="Replacement name@version of rewritten discovered nodes",
    )


class DependencyGraphBuilder:
    """Builds the dependency graph of a discovered package set.

    Every lock entry yields exactly one edge from the declaring package to the
    pinned (registry name, version) it names, matched exactly. Dependencies
    outside the discovered set become external unknown nodes.
    """

    def __init__(self, config: Optional[ExtractorConfig] = None) -> None:
        self.config = config or ExtractorConfig()

    def build(self, packages: list[Package]) -> GraphBuildResult:
        """Build the graph.

        Args:
            packages: Discovered, deduplicated packages.

        Returns:
            GraphBuildResult with the graph and any recorded issues.
        """
        graph = DependencyGraph()
        index: dict[tuple[str, str], list[str]] = {}
        for package in sorted(packages, key=lambda p: p.node_id):
            graph.add_node(
                GraphNode(
                    node_id=package.node_id,
                    registry_name=package.name.registry_name,
                    version=package.version.raw,
                    path_name=package.name.path_name,
                )
            )
            key = (package.name.registry_name, package.version.raw)
            index.setdefault(key, []).append(package.node_id)

        result = GraphBuildResult(graph=graph)

        for package in sorted(packages, key=lambda p: p.node_id):
            replacement = resolve_rewrite(
                package.name.registry_name,
                package.version.raw,
                self.config.package_rewrites,
            )
            if replacement is not None:
                result.replaced_by[package.node_id] = "@".join(replacement)

            for dependency in package.dependencies:
                if dependency.rewritten_from is not None:
                    result.replaced_dependencies.setdefault(package.node_id, []).append(
                        dependency.rewritten_from
                    )
                    continue
                for target in self._resolve_targets(package, dependency, index, result):
                    graph.add_edge(package.node_id, target)

        for node_id in result.replaced_dependencies:
            result.replaced_dependencies[node_id] = sorted(
                set(result.replaced_dependencies[node_id])
            )

        external = graph.external_nodes()
        logger.info(
            "Built dependency graph: %d nodes (%d external), %d edges",
            len(graph),
            len(external),
            sum(1 for _ in graph.iter_edges()),
        )
        return result

    def _resolve_targets(
        self,
        package: Package,
        dependency: LockDependency,
        index: dict[tuple[str, str], list[str]],
        result: GraphBuildResult,
    ) -> list[str]:
        """Find the node ids a lock entry points at, adding external nodes."""
        try:
            version = self._pinned_version(package, dependency)
        except GraphInconsistencyError as e:
            logger.warning("%s", e)
            result.issues.append(
                RunIssue(
                    kind=IssueKind.GRAPH_INCONSISTENCY,
                    message=str(e),
                    package=e.package,
                    path=str(package.root),
                )
            )
            return [self._add_external(result.graph, dependency.registry_name, UNKNOWN_VERSION)]

        candidates = index.get((dependency.registry_name, version), [])
        if not candidates:
            logger.debug(
                "%s depends on %s@%s outside the discovered set",
                package.node_id,
                dependency.registry_name,
                version,
            )
            return [self._add_external(result.graph, dependency.registry_name, version)]

        if len(candidates) > 1:
            result.issues.append(
                RunIssue(
                    kind=IssueKind.AMBIGUOUS_DEPENDENCY,
                    message=(
                        f"Dependency '{dependency.display}' of '{package.node_id}' "
                        f"matches {len(candidates)} different packages: "
                        f"{', '.join(candidates)}"
                    ),
                    package=package.node_id,
                    path=str(package.root),
                )
            )
        return candidates

    @staticmethod
    def _pinned_version(package: Package, dependency: LockDependency) -> str:
        """Pinned version of a lock entry.

        Raises:
            GraphInconsistencyError: If the entry carries no version.
        """
        if dependency.version is None:
            raise GraphInconsistencyError(
                f"Dependency '{dependency.path_name}' of '{package.node_id}' "
                "has no resolvable version; treating it as an external unknown",
                package=package.node_id,
            )
        return dependency.version.raw

    @staticmethod
    def _add_external(graph: DependencyGraph, registry_name: str, version: str) -> str:
        node_id = Package.make_node_id(registry_name, version)
        graph.add_node(
            GraphNode(
                node_id=node_id,
                registry_name=registry_name,
                version=version,
                external=True,
            )
        )
        return node_id


def build_dependency_graph(
    packages: list[Package], config: Optional[ExtractorConfig] = None
) -> GraphBuildResult:
    """Convenience wrapper around DependencyGraphBuilder."""
    return DependencyGraphBuilder(config).build(packages)
