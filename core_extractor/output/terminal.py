"""Terminal output formatter using Rich."""
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core_extractor.analysis.diff import ResultDiff
from core_extractor.constants import LEGAL_DISCLAIMER
from core_extractor.models.result import ExtractionResult, PackageReport, Verbosity
from core_extractor.models.verdict import PackageStatus


class TerminalFormatter:
    """Format extraction results for terminal display using Rich."""

    STATUS_STYLES = {
        PackageStatus.INCLUDED: "green",
        PackageStatus.BLOCKED_BY_DEPENDENCY: "yellow",
        PackageStatus.UNLICENSED: "red",
    }

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

    def _status(self, status: PackageStatus) -> str:
        color = self.STATUS_STYLES[status]
        return f"[{color}]{status.value}[/{color}]"

    def format_result(self, result: ExtractionResult) -> None:
        """Display an extraction result as a Rich table.

        Args:
            result: The result to display.
        """
        if self._verbosity == Verbosity.QUIET:
            self._print_quiet_output(result)
            return

        self._print_summary(result)
        self._print_disclaimer()

        table = Table(title="Extraction Results")
        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Version", style="magenta")
        table.add_column("Status")
        table.add_column("Licenses", style="green")
        table.add_column("Min confidence", justify="right")
        if self._verbosity == Verbosity.VERBOSE:
            table.add_column("Blocked by / unlicensed files")

        for pkg in result.packages:
            row = [
                pkg.name,
                pkg.version,
                self._status(pkg.status),
                ", ".join(pkg.licenses) or "-",
                f"{pkg.confidence.min_confidence:.2f}",
            ]
            if self._verbosity == Verbosity.VERBOSE:
                row.append(self._detail(pkg))
            table.add_row(*row)

        self._console.print(table)

        if result.external_dependencies:
            self._console.print("\n[bold]External dependencies (unlicensed):[/bold]")
            for dep in result.external_dependencies:
                required_by = ", ".join(dep.required_by)
                self._console.print(f"  - {dep.node_id} [dim](required by {required_by})[/dim]")

        if result.issues:
            self._console.print(f"\n[bold]Run issues:[/bold] {len(result.issues)}")
            for issue in result.issues:
                self._console.print(f"  - [yellow]{issue.kind.value}[/yellow]: {issue.message}")

    @staticmethod
    def _detail(pkg: PackageReport) -> str:
        if pkg.status == PackageStatus.BLOCKED_BY_DEPENDENCY:
            return ", ".join(pkg.blocking_dependencies)
        if pkg.status == PackageStatus.UNLICENSED:
            return ", ".join(pkg.unlicensed_files)
        return ""

    def _print_quiet_output(self, result: ExtractionResult) -> None:
        """Print one status line and the packages that are not included."""
        if not result.has_issues:
            self._console.print(
                f"[green]PASS[/green] - All {len(result.packages)} packages included"
            )
            return

        self._console.print(
            f"[red]ISSUES FOUND[/red] - {len(result.blocked)} blocked, "
            f"{len(result.unlicensed)} unlicensed"
        )
        for pkg in result.packages:
            if pkg.status != PackageStatus.INCLUDED:
                self._console.print(f"  - {pkg.node_id}: {self._status(pkg.status)}")

    def _print_summary(self, result: ExtractionResult) -> None:
        """Print executive summary panel."""
        status_color = "red" if result.has_issues else "green"
        status = "ISSUES FOUND" if result.has_issues else "PASS"

        summary_lines = [
            f"Total Packages: {len(result.packages)}",
            f"Included: {len(result.included)}",
            f"Blocked by dependency: {len(result.blocked)}",
            f"Unlicensed: {len(result.unlicensed)}",
        ]
        if result.blocking_packages:
            summary_lines.append(f"Blocking: {', '.join(result.blocking_packages)}")
        if result.cycles:
            summary_lines.append(f"Dependency cycles: {len(result.cycles)}")
        summary_lines.extend(["", f"Status: [{status_color}]{status}[/{status_color}]"])

        panel = Panel(
            "\n".join(summary_lines),
            title="[bold]EXECUTIVE SUMMARY[/bold]",
            border_style=status_color,
        )
        self._console.print(panel)
        self._console.print("")

    def _print_disclaimer(self) -> None:
        panel = Panel(
            LEGAL_DISCLAIMER,
            title="[bold yellow]NOT LEGAL ADVICE[/bold yellow]",
            border_style="yellow",
        )
        self._console.print(panel)
        self._console.print("")

    def format_diff(self, diff: ResultDiff) -> None:
        """Display the differences between two results.

        Args:
            diff: The comparison to display.
        """
        if diff.is_empty:
            self._console.print("[green]No differences[/green]")
            return

        for node_id in diff.added:
            self._console.print(f"[green]+ {node_id}[/green]")
        for node_id in diff.removed:
            self._console.print(f"[red]- {node_id}[/red]")
        for change in diff.changed:
            marker = " [red]⚠[/red]" if change.is_regression else ""
            self._console.print(
                f"~ {change.node_id}: {self._status(change.previous)} -> "
                f"{self._status(change.current)}{marker}"
            )

        self._console.print(
            f"\n[bold]Added:[/bold] {len(diff.added)}  "
            f"[bold]Removed:[/bold] {len(diff.removed)}  "
            f"[bold]Changed:[/bold] {len(diff.changed)}"
        )
