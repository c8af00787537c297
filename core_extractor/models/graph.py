"""Dependency graph model for core-extractor.

Nodes are package versions keyed by node id; edges point from the declaring
package to its dependency. Cycles and diamonds are allowed.
"""

from typing import Iterator, Optional

from pydantic import BaseModel, Field


class GraphNode(BaseModel):
    """A package version in the dependency graph."""

    model_config = {"extra": "forbid", "frozen": True}

    node_id: str = Field(description="Unique node identifier")
    registry_name: str = Field(description="Normalized registry name")
    version: str = Field(description="Pinned version ('?' if unknown)")
    path_name: Optional[str] = Field(
        default=None, description="Directory name, None for external nodes"
    )
    external: bool = Field(
        default=False,
        description="Declared dependency outside the discovered set",
    )


class DependencyGraph(BaseModel):
    """Directed dependency graph.

    Adjacency is kept as sets so that duplicate lock entries collapse into a
    single edge; iteration is always in sorted order for determinism.
    """

    model_config = {"extra": "forbid"}

    nodes: dict[str, GraphNode] = Field(default_factory=dict)
    edges: dict[str, set[str]] = Field(default_factory=dict)

    def add_node(self, node: GraphNode) -> None:
        """Add a node; an existing node with the same id is kept."""
        self.nodes.setdefault(node.node_id, node)
        self.edges.setdefault(node.node_id, set())

    def add_edge(self, source: str, target: str) -> None:
        """Add a "depends on" edge between two existing nodes.

        Raises:
            KeyError: If either endpoint is not a node of the graph.
        """
        if source not in self.nodes:
            raise KeyError(f"Unknown source node: {source}")
        if target not in self.nodes:
            raise KeyError(f"Unknown target node: {target}")
        self.edges[source].add(target)

    def successors(self, node_id: str) -> list[str]:
        """Direct dependencies of a node, sorted."""
        return sorted(self.edges.get(node_id, ()))

    def predecessors(self, node_id: str) -> list[str]:
        """Nodes that directly depend on a node, sorted."""
        return sorted(
            source for source, targets in self.edges.items() if node_id in targets
        )

    def iter_edges(self) -> Iterator[tuple[str, str]]:
        """Yield every edge in sorted order."""
        for source in sorted(self.edges):
            for target in sorted(self.edges[source]):
                yield source, target

    def external_nodes(self) -> list[GraphNode]:
        """External unknown nodes, sorted by id."""
        return [
            self.nodes[node_id]
            for node_id in sorted(self.nodes)
            if self.nodes[node_id].external
        ]

    def find_cycles(self) -> list[list[str]]:
        """Find strongly connected components that form cycles.

        Uses an iterative Tarjan traversal so deep graphs cannot exhaust the
        recursion limit.

        Returns:
            Sorted list of cycles, each a sorted list of node ids. Single
            nodes are only reported when they depend on themselves.
        """
        index: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: list[list[str]] = []
        counter = 0

        for start in sorted(self.nodes):
            if start in index:
                continue
            work: list[tuple[str, Iterator[str]]] = []
            index[start] = lowlink[start] = counter
            counter += 1
            stack.append(start)
            on_stack.add(start)
            work.append((start, iter(self.successors(start))))

            while work:
                node, children = work[-1]
                advanced = False
                for child in children:
                    if child not in index:
                        index[child] = lowlink[child] = counter
                        counter += 1
                        stack.append(child)
                        on_stack.add(child)
                        work.append((child, iter(self.successors(child))))
                        advanced = True
                        break
                    if child in on_stack:
                        lowlink[node] = min(lowlink[node], index[child])
                if advanced:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index[node]:
                    component: list[str] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1 or node in self.edges.get(node, ()):
                        components.append(sorted(component))

        return sorted(components)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes
