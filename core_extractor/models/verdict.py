"""License verdict and package status models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from core_extractor.constants import LICENSED_THRESHOLD


class LicenseVerdict(BaseModel):
    """Classification of a single source file.

    Derived for each run from the current license dataset; never persisted
    as ground truth.
    """

    model_config = {"extra": "forbid", "frozen": True}

    matched_license_id: Optional[str] = Field(
        default=None, description="Best matching reference license"
    )
    confidence: float = Field(
        ge=0.0, le=1.0, description="Similarity to the best reference (0.0-1.0)"
    )
    override_reason: Optional[str] = Field(
        default=None, description="Reason for a configured file override"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def licensed(self) -> bool:
        """True only for a confident match to a single reference."""
        return (
            self.matched_license_id is not None
            and self.confidence >= LICENSED_THRESHOLD
        )

    @classmethod
    def unlicensed(cls) -> "LicenseVerdict":
        """Verdict for a file without a usable header."""
        return cls(matched_license_id=None, confidence=0.0)


class PackageStatus(str, Enum):
    """Final inclusion status of a package."""

    INCLUDED = "included"
    BLOCKED_BY_DEPENDENCY = "blocked_by_dependency"
    UNLICENSED = "unlicensed"


class PackageVerdict(BaseModel):
    """Resolved verdict of one graph node."""

    model_config = {"extra": "forbid"}

    own_files_licensed: bool = Field(description="All own files licensed")
    status: PackageStatus = Field(description="Final inclusion status")
    blocking_dependencies: list[str] = Field(
        default_factory=list,
        description="Direct dependencies that are not included (blocked only)",
    )
