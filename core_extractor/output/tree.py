"""Tree output formatter for dependency visualization."""
from typing import Optional

from rich.console import Console
from rich.tree import Tree

from core_extractor.models.result import ExtractionResult, Verbosity
from core_extractor.models.verdict import PackageStatus


class TreeFormatter:
    """Format the dependency structure of a result as a Rich tree.

    Each package appears with its status. A dependency already on the current
    path is a cycle and is marked instead of expanded; a package expanded
    elsewhere in the tree is listed without repeating its subtree.
    """

    STATUS_COLORS = {
        PackageStatus.INCLUDED: "green",
        PackageStatus.BLOCKED_BY_DEPENDENCY: "yellow",
        PackageStatus.UNLICENSED: "red",
    }

    CIRCULAR_MARKER = " [cyan]↺[/cyan]"
    SEEN_MARKER = " [dim](see above)[/dim]"
    EXTERNAL_MARKER = " [red]external[/red]"

    def __init__(
        self,
        console: Optional[Console] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbosity: Output verbosity level.
        """
        self._console = console if console is not None else Console()
        self._verbosity = verbosity

    def build_tree(self, result: ExtractionResult) -> Tree:
        """Build the Rich tree without printing it.

        Roots are packages no other package depends on. Packages reachable
        from no root (members of a cycle nobody else depends on) are added
        as extra roots.
        """
        packages = {pkg.node_id: pkg for pkg in result.packages}
        dependents = {
            dep for pkg in result.packages for dep in pkg.dependencies
        }
        roots = [node_id for node_id in packages if node_id not in dependents]

        rich_tree = Tree("[bold]Packages[/bold]")
        expanded: set[str] = set()

        def add_root(root_id: str) -> None:
            # Explicit stack of (parent branch, node id, ancestors)
            stack: list[tuple[Tree, str, frozenset[str]]] = [
                (rich_tree, root_id, frozenset())
            ]
            while stack:
                parent, node_id, ancestors = stack.pop()
                if node_id in ancestors:
                    parent.add(f"[dim]{node_id}[/dim]{self.CIRCULAR_MARKER}")
                    continue
                label = self._label(result, node_id)
                if node_id in expanded:
                    parent.add(f"{label}{self.SEEN_MARKER}")
                    continue
                branch = parent.add(label)
                expanded.add(node_id)
                pkg = packages.get(node_id)
                if pkg is None:
                    continue
                children = ancestors | {node_id}
                for dep in reversed(pkg.dependencies):
                    stack.append((branch, dep, children))

        for root_id in roots:
            add_root(root_id)
        for node_id in packages:
            if node_id not in expanded:
                add_root(node_id)
        return rich_tree

    def _label(self, result: ExtractionResult, node_id: str) -> str:
        pkg = result.get_package(node_id)
        if pkg is None:
            return f"{node_id}{self.EXTERNAL_MARKER}"
        color = self.STATUS_COLORS[pkg.status]
        label = f"{node_id} ([{color}]{pkg.status.value}[/{color}])"
        if pkg.replaced_by:
            label += f" [blue](replaced by {pkg.replaced_by})[/blue]"
        if self._verbosity == Verbosity.VERBOSE and pkg.unlicensed_files:
            label += f" [dim]unlicensed: {', '.join(pkg.unlicensed_files)}[/dim]"
        return label

    def format_result(self, result: ExtractionResult) -> None:
        """Display the dependency tree of a result.

        Args:
            result: The result to display.
        """
        if not result.packages:
            self._console.print("[yellow]No packages found[/yellow]")
            return

        if self._verbosity != Verbosity.QUIET:
            self._console.print(self.build_tree(result))
            self._console.print()

        self._console.print(f"[bold]Total packages:[/bold] {len(result.packages)}")
        self._console.print(
            f"[bold]External dependencies:[/bold] {len(result.external_dependencies)}"
        )
        if result.cycles:
            self._console.print(
                f"[bold cyan]Circular dependencies:[/bold cyan] {len(result.cycles)}"
            )
            for cycle in result.cycles:
                self._console.print(f"  [cyan]↺ {', '.join(cycle)}[/cyan]")
        else:
            self._console.print("[bold]Circular dependencies:[/bold] 0")
