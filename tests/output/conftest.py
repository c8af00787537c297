"""Fixtures shared by the output formatter tests."""

import pytest

from core_extractor.models.result import (
    ConfidenceSummary,
    ExternalDependency,
    ExtractionResult,
    IssueKind,
    PackageReport,
    RunIssue,
)
from core_extractor.models.verdict import PackageStatus


def make_report(
    node_id: str,
    status: PackageStatus,
    dependencies: tuple[str, ...] = (),
    blocking: tuple[str, ...] = (),
    licenses: tuple[str, ...] = ("MIT",),
    unlicensed_files: tuple[str, ...] = (),
) -> PackageReport:
    """Build a package report with consistent confidence figures."""
    name, _, version = node_id.partition("@")
    licensed = not unlicensed_files
    return PackageReport(
        node_id=node_id,
        name=name,
        path_name=name.title(),
        version=version,
        status=status,
        own_files_licensed=licensed,
        confidence=ConfidenceSummary(
            file_count=1,
            licensed_file_count=int(licensed),
            min_confidence=1.0 if licensed else 0.0,
            mean_confidence=1.0 if licensed else 0.0,
        ),
        licenses=list(licenses) if licensed else [],
        unlicensed_files=list(unlicensed_files),
        blocking_dependencies=list(blocking),
        dependencies=list(dependencies),
    )


@pytest.fixture
def clean_result() -> ExtractionResult:
    """Result in which every package is included."""
    return ExtractionResult(
        packages=[
            make_report("app@1.0.0", PackageStatus.INCLUDED, ("leaf@2.0.0",)),
            make_report("leaf@2.0.0", PackageStatus.INCLUDED, licenses=("Apache-2.0",)),
        ]
    )


@pytest.fixture
def blocked_result() -> ExtractionResult:
    """Result with a transitive block, an external dependency and an issue."""
    return ExtractionResult(
        packages=[
            make_report(
                "app@1.0.0",
                PackageStatus.BLOCKED_BY_DEPENDENCY,
                ("leaf@1.0.0", "mid@1.0.0"),
                blocking=("mid@1.0.0",),
            ),
            make_report(
                "bad@1.0.0",
                PackageStatus.UNLICENSED,
                unlicensed_files=("src/init.lua",),
            ),
            make_report("leaf@1.0.0", PackageStatus.INCLUDED),
            make_report(
                "mid@1.0.0",
                PackageStatus.BLOCKED_BY_DEPENDENCY,
                ("bad@1.0.0", "x@?"),
                blocking=("bad@1.0.0", "x@?"),
            ),
        ],
        external_dependencies=[
            ExternalDependency(node_id="x@?", name="x", version="?", required_by=["mid@1.0.0"])
        ],
        issues=[
            RunIssue(
                kind=IssueKind.GRAPH_INCONSISTENCY,
                message="Dependency 'X' of 'mid@1.0.0' has no resolvable version",
                package="mid@1.0.0",
            )
        ],
    )


@pytest.fixture
def report_factory():
    """Provide make_report to tests that build their own results."""
    return make_report
