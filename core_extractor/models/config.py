"""Configuration Pydantic models for core-extractor."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from core_extractor.constants import (
    DEFAULT_IGNORED_HEADER_MARKERS,
    DEFAULT_LOCK_FILE_NAME,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SOURCE_EXTENSIONS,
)


class LicenseOverride(BaseModel):
    """Manual license override for a source file.

    Used for modules too small to carry a license header of their own.
    """

    model_config = {"extra": "forbid"}

    license: str = Field(description="SPDX license identifier to use")
    reason: str = Field(description="Reason for the override")


class RewriteOriginal(BaseModel):
    """A vendor package that a rewrite replaces."""

    model_config = {"extra": "forbid"}

    name: str = Field(description="Registry name of the original package")
    version: str = Field(description="Pinned version of the original package")
    description: Optional[str] = Field(
        default=None, description="Why the original is replaced"
    )


class PackageRewrite(BaseModel):
    """Replacement of vendor packages by a package published elsewhere."""

    model_config = {"extra": "forbid"}

    new_name: str = Field(description="Registry name of the replacement")
    new_version: str = Field(description="Version of the replacement")
    originals: List[RewriteOriginal] = Field(
        default_factory=list, description="Vendor packages being replaced"
    )


class ExtractorConfig(BaseModel):
    """Configuration for core-extractor.

    Every field has a default so that partial configuration files work.
    """

    model_config = {"extra": "forbid"}

    lock_file_name: str = Field(
        default=DEFAULT_LOCK_FILE_NAME,
        min_length=1,
        description="File whose presence marks a package root.",
    )
    source_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS),
        description="Extensions of source files whose headers are checked.",
    )
    ignored_header_markers: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_HEADER_MARKERS),
        description="Comment lines containing these markers are not license text.",
    )
    banned_packages: Optional[List[str]] = Field(
        default=None,
        description="Path or registry names of packages to skip at discovery.",
    )
    file_overrides: Optional[Dict[str, LicenseOverride]] = Field(
        default=None,
        description="Manual license overrides by source path suffix.",
    )
    package_rewrites: Optional[Dict[str, PackageRewrite]] = Field(
        default=None,
        description="Vendor packages replaced by packages published elsewhere.",
    )
    license_dataset: Optional[str] = Field(
        default=None,
        description="Path to a license dataset file or SPDX details directory.",
    )
    match_strategy: Literal["sequence", "token"] = Field(
        default="sequence",
        description="License header matching strategy.",
    )
    max_workers: int = Field(
        default=DEFAULT_MAX_WORKERS,
        ge=1,
        description="Maximum concurrent file reads and classifications.",
    )
