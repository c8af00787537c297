"""Package discovery, lock parsing and dependency graph construction."""

from core_extractor.discovery.graph import (
    DependencyGraphBuilder,
    GraphBuildResult,
    build_dependency_graph,
)
from core_extractor.discovery.lockfile import (
    parse_dependency_string,
    parse_lock,
    read_lock,
    resolve_rewrite,
)
from core_extractor.discovery.packages import (
    DiscoveryResult,
    PackageDiscoverer,
    deduplicate_packages,
    find_package_roots,
)

__all__ = [
    "DependencyGraphBuilder",
    "DiscoveryResult",
    "GraphBuildResult",
    "PackageDiscoverer",
    "build_dependency_graph",
    "deduplicate_packages",
    "find_package_roots",
    "parse_dependency_string",
    "parse_lock",
    "read_lock",
    "resolve_rewrite",
]
