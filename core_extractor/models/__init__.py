"""Pydantic data models for core-extractor."""

from core_extractor.models.config import (
    ExtractorConfig,
    LicenseOverride,
    PackageRewrite,
    RewriteOriginal,
)
from core_extractor.models.graph import DependencyGraph, GraphNode
from core_extractor.models.package import (
    LockDependency,
    Package,
    PackageLock,
    PackageName,
    PackageVersion,
    SourceFile,
    VersionKind,
)
from core_extractor.models.result import (
    ConfidenceSummary,
    ExternalDependency,
    ExtractionResult,
    IssueKind,
    PackageReport,
    RunIssue,
    Verbosity,
)
from core_extractor.models.verdict import (
    LicenseVerdict,
    PackageStatus,
    PackageVerdict,
)

__all__ = [
    "ConfidenceSummary",
    "DependencyGraph",
    "ExternalDependency",
    "ExtractionResult",
    "ExtractorConfig",
    "GraphNode",
    "IssueKind",
    "LicenseOverride",
    "LicenseVerdict",
    "LockDependency",
    "Package",
    "PackageLock",
    "PackageName",
    "PackageReport",
    "PackageRewrite",
    "PackageStatus",
    "PackageVerdict",
    "PackageVersion",
    "RewriteOriginal",
    "RunIssue",
    "SourceFile",
    "Verbosity",
    "VersionKind",
]
