"""Extraction pipeline.

Runs discovery, classification, graph construction, resolution and result
assembly as strict stages. Each stage starts only when the previous one has
fully finished, and cancellation is checked between stages.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from core_extractor.analysis.dataset import LicenseDataset, builtin_dataset, load_dataset
from core_extractor.analysis.matcher import LicenseClassifier, MatchStrategy, get_strategy
from core_extractor.analysis.resolver import ResolutionOutcome, resolve_inclusion
from core_extractor.discovery.graph import DependencyGraphBuilder, GraphBuildResult
from core_extractor.discovery.packages import PackageDiscoverer
from core_extractor.exceptions import ExtractionCancelled, NoPackagesFoundError
from core_extractor.models.config import ExtractorConfig
from core_extractor.models.package import Package
from core_extractor.models.result import (
    ConfidenceSummary,
    ExternalDependency,
    ExtractionResult,
    PackageReport,
    RunIssue,
)
from core_extractor.models.verdict import LicenseVerdict

logger = logging.getLogger(__name__)

# Per package: (relative file path, verdict), in file order
FileVerdicts = dict[str, list[tuple[str, LicenseVerdict]]]


def summarize_confidence(verdicts: list[tuple[str, LicenseVerdict]]) -> ConfidenceSummary:
    """Aggregate file verdicts of one package.

    A package without source files has nothing unlicensed in it and reports
    full confidence.
    """
    if not verdicts:
        return ConfidenceSummary(
            file_count=0, licensed_file_count=0, min_confidence=1.0, mean_confidence=1.0
        )
    confidences = [verdict.confidence for _, verdict in verdicts]
    return ConfidenceSummary(
        file_count=len(verdicts),
        licensed_file_count=sum(1 for _, verdict in verdicts if verdict.licensed),
        min_confidence=min(confidences),
        mean_confidence=sum(confidences) / len(confidences),
    )


def assemble_result(
    packages: list[Package],
    file_verdicts: FileVerdicts,
    graph_result: GraphBuildResult,
    outcome: ResolutionOutcome,
    issues: list[RunIssue],
) -> ExtractionResult:
    """Combine stage outputs into the final result.

    Everything is sorted, so identical inputs serialize identically.
    """
    graph = graph_result.graph
    reports: list[PackageReport] = []
    for package in sorted(packages, key=lambda p: p.node_id):
        verdicts = file_verdicts.get(package.node_id, [])
        resolved = outcome.verdicts[package.node_id]
        reports.append(
            PackageReport(
                node_id=package.node_id,
                name=package.name.registry_name,
                path_name=package.name.path_name,
                version=package.version.raw,
                status=resolved.status,
                own_files_licensed=resolved.own_files_licensed,
                confidence=summarize_confidence(verdicts),
                lines_of_code=package.lines_of_code,
                licenses=sorted(
                    {
                        verdict.matched_license_id
                        for _, verdict in verdicts
                        if verdict.licensed and verdict.matched_license_id
                    }
                ),
                unlicensed_files=sorted(
                    path for path, verdict in verdicts if not verdict.licensed
                ),
                blocking_dependencies=list(resolved.blocking_dependencies),
                dependencies=graph.successors(package.node_id),
                replaced_dependencies=graph_result.replaced_dependencies.get(
                    package.node_id, []
                ),
                replaced_by=graph_result.replaced_by.get(package.node_id),
            )
        )

    external = [
        ExternalDependency(
            node_id=node.node_id,
            name=node.registry_name,
            version=node.version,
            required_by=graph.predecessors(node.node_id),
        )
        for node in graph.external_nodes()
    ]

    return ExtractionResult(
        packages=reports,
        external_dependencies=external,
        cycles=graph.find_cycles(),
        issues=sorted(
            issues,
            key=lambda i: (i.kind.value, i.package or "", i.path or "", i.message),
        ),
    )


class ExtractionPipeline:
    """Coordinates one extraction run.

    A pipeline holds configuration only; every call to run() recomputes
    everything from the tree and the dataset.
    """

    def __init__(
        self,
        dataset: Optional[LicenseDataset] = None,
        config: Optional[ExtractorConfig] = None,
        strategy: Optional[MatchStrategy] = None,
        cancel_event: Optional[threading.Event] = None,
        console: Optional[Console] = None,
        show_progress: bool = False,
    ) -> None:
        """Initialize the pipeline.

        Args:
            dataset: Reference licenses. Defaults to the configured dataset
                file, or the built-in dataset if none is configured.
            config: Extractor configuration. Defaults to ExtractorConfig().
            strategy: Matching strategy. Defaults to the configured one.
            cancel_event: Set to request cancellation at the next stage.
            console: Rich console for progress display.
            show_progress: Whether to show a progress indicator.
        """
        self.config = config or ExtractorConfig()
        if dataset is None:
            if self.config.license_dataset:
                dataset = load_dataset(Path(self.config.license_dataset))
            else:
                dataset = builtin_dataset()
        self.dataset = dataset
        self.strategy = strategy or get_strategy(self.config.match_strategy)
        self.cancel_event = cancel_event or threading.Event()
        self.console = console
        self.show_progress = show_progress

    def _check_cancelled(self, stage: str) -> None:
        if self.cancel_event.is_set():
            logger.info("Cancellation requested before stage %s", stage)
            raise ExtractionCancelled(stage)

    async def classify(self, packages: list[Package]) -> FileVerdicts:
        """Classify every source file of every package.

        Files are classified on worker threads, at most ``max_workers`` at a
        time. Once cancellation is requested, files not yet started are
        skipped; files already in progress finish.

        Returns:
            Verdicts per package node id, in file order.
        """
        classifier = LicenseClassifier(
            self.dataset, self.strategy, self.config.file_overrides
        )
        semaphore = asyncio.Semaphore(self.config.max_workers)
        jobs = [
            (package, index)
            for package in packages
            for index in range(len(package.files))
        ]
        results: dict[tuple[str, int], LicenseVerdict] = {}

        async def classify_one(package: Package, index: int) -> None:
            async with semaphore:
                if self.cancel_event.is_set():
                    return
                verdict = await asyncio.to_thread(
                    classifier.classify_file,
                    package.files[index],
                    package.name.path_name,
                )
                results[(package.node_id, index)] = verdict

        if self.console is not None and self.show_progress and jobs:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.console,
                transient=True,
            ) as progress:
                task_id = progress.add_task(
                    f"Classifying {len(jobs)} files in {len(packages)} packages...",
                    total=len(jobs),
                )
                for coro in asyncio.as_completed(
                    [classify_one(package, index) for package, index in jobs]
                ):
                    await coro
                    progress.advance(task_id)
        else:
            await asyncio.gather(
                *(classify_one(package, index) for package, index in jobs)
            )

        file_verdicts: FileVerdicts = {}
        for package in packages:
            verdicts = [
                (source_file.path, results[(package.node_id, index)])
                for index, source_file in enumerate(package.files)
                if (package.node_id, index) in results
            ]
            file_verdicts[package.node_id] = verdicts
            if not package.files:
                logger.debug("%s has no source files", package.node_id)
        return file_verdicts

    async def run_async(self, root: Path) -> ExtractionResult:
        """Run the pipeline on a raw extracted tree.

        Args:
            root: Top of the tree.

        Returns:
            The classified, resolved package set.

        Raises:
            ExtractionCancelled: If cancellation was requested.
            NoPackagesFoundError: If the tree contains no packages.
            DiscoveryError: If the root is not a directory.
        """
        self._check_cancelled("discover")
        discovery = await PackageDiscoverer(self.config).discover(root)
        if not discovery.packages:
            raise NoPackagesFoundError(
                f"No packages found under '{root}'",
                skipped=[issue.message for issue in discovery.issues],
            )
        packages = discovery.packages

        self._check_cancelled("classify")
        file_verdicts = await self.classify(packages)

        self._check_cancelled("build_graph")
        graph_result = DependencyGraphBuilder(self.config).build(packages)

        self._check_cancelled("resolve")
        own_files_licensed = {
            package.node_id: all(
                verdict.licensed for _, verdict in file_verdicts[package.node_id]
            )
            for package in packages
        }
        outcome = resolve_inclusion(graph_result.graph, own_files_licensed)

        self._check_cancelled("assemble")
        result = assemble_result(
            packages,
            file_verdicts,
            graph_result,
            outcome,
            discovery.issues + graph_result.issues,
        )
        logger.info(
            "Extraction finished: %d included, %d blocked, %d unlicensed",
            len(result.included),
            len(result.blocked),
            len(result.unlicensed),
        )
        return result

    def run(self, root: Path) -> ExtractionResult:
        """Synchronous wrapper around run_async()."""
        return asyncio.run(self.run_async(root))
