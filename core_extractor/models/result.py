"""Extraction result models.

The result is the sole artifact handed to exporters: they must not
re-derive package status themselves.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from core_extractor.models.verdict import PackageStatus


class Verbosity(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"


class IssueKind(str, Enum):
    """Kinds of recoverable problems recorded during a run."""

    DISCOVERY_ERROR = "discovery_error"
    GRAPH_INCONSISTENCY = "graph_inconsistency"
    BANNED_PACKAGE = "banned_package"
    DUPLICATE_PACKAGE = "duplicate_package"
    AMBIGUOUS_DEPENDENCY = "ambiguous_dependency"


class RunIssue(BaseModel):
    """A recoverable problem, kept for audit."""

    model_config = {"extra": "forbid"}

    kind: IssueKind = Field(description="Kind of issue")
    message: str = Field(description="Human-readable description")
    package: Optional[str] = Field(default=None, description="Package concerned")
    path: Optional[str] = Field(default=None, description="Filesystem path concerned")


class ConfidenceSummary(BaseModel):
    """Aggregate license confidence of a package's own files."""

    model_config = {"extra": "forbid"}

    file_count: int = Field(ge=0, description="Number of source files")
    licensed_file_count: int = Field(ge=0, description="Number of licensed files")
    min_confidence: float = Field(
        ge=0.0, le=1.0, description="Lowest file confidence (1.0 if no files)"
    )
    mean_confidence: float = Field(
        ge=0.0, le=1.0, description="Mean file confidence (1.0 if no files)"
    )


class PackageReport(BaseModel):
    """Final verdict and detail for one discovered package."""

    model_config = {"extra": "forbid"}

    node_id: str = Field(description="Graph node identifier")
    name: str = Field(description="Registry name")
    path_name: str = Field(description="Directory name as extracted")
    version: str = Field(description="Pinned version")
    status: PackageStatus = Field(description="Final inclusion status")
    own_files_licensed: bool = Field(description="All own files licensed")
    confidence: ConfidenceSummary
    licenses: list[str] = Field(
        default_factory=list, description="Licenses matched by own files"
    )
    lines_of_code: int = Field(default=0, ge=0, description="Lines across own source files")
    unlicensed_files: list[str] = Field(
        default_factory=list, description="Own files without a confident match"
    )
    blocking_dependencies: list[str] = Field(
        default_factory=list,
        description="Direct dependencies preventing inclusion",
    )
    dependencies: list[str] = Field(
        default_factory=list, description="Direct dependency node ids"
    )
    replaced_dependencies: list[str] = Field(
        default_factory=list,
        description="Dependencies satisfied by a configured rewrite",
    )
    replaced_by: Optional[str] = Field(
        default=None,
        description="Replacement name@version if this package is rewritten",
    )


class ExternalDependency(BaseModel):
    """A declared dependency outside the discovered set."""

    model_config = {"extra": "forbid"}

    node_id: str = Field(description="Graph node identifier")
    name: str = Field(description="Registry name")
    version: str = Field(description="Pinned version ('?' if unknown)")
    required_by: list[str] = Field(
        default_factory=list, description="Packages declaring this dependency"
    )


class ExtractionResult(BaseModel):
    """Classified, resolved package set of one extraction run."""

    model_config = {"extra": "forbid"}

    packages: list[PackageReport] = Field(default_factory=list)
    external_dependencies: list[ExternalDependency] = Field(default_factory=list)
    cycles: list[list[str]] = Field(
        default_factory=list, description="Dependency cycles, for audit"
    )
    issues: list[RunIssue] = Field(default_factory=list)

    def _with_status(self, status: PackageStatus) -> list[PackageReport]:
        return [pkg for pkg in self.packages if pkg.status == status]

    @property
    def included(self) -> list[PackageReport]:
        """Packages that may be published."""
        return self._with_status(PackageStatus.INCLUDED)

    @property
    def blocked(self) -> list[PackageReport]:
        """Packages blocked by a dependency."""
        return self._with_status(PackageStatus.BLOCKED_BY_DEPENDENCY)

    @property
    def unlicensed(self) -> list[PackageReport]:
        """Packages with unlicensed files of their own."""
        return self._with_status(PackageStatus.UNLICENSED)

    @property
    def blocking_packages(self) -> list[str]:
        """Unlicensed or external nodes that prevent inclusion of a dependent.

        Returns:
            Sorted node ids.
        """
        not_blocking = {
            pkg.node_id
            for pkg in self.packages
            if pkg.status != PackageStatus.UNLICENSED
        }
        cited = {dep for pkg in self.blocked for dep in pkg.blocking_dependencies}
        return sorted(cited - not_blocking)

    @property
    def has_issues(self) -> bool:
        """True if any package is not included."""
        return any(pkg.status != PackageStatus.INCLUDED for pkg in self.packages)

    def get_package(self, node_id: str) -> Optional[PackageReport]:
        """Look up a package report by node id."""
        for pkg in self.packages:
            if pkg.node_id == node_id:
                return pkg
        return None
