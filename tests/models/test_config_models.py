"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from core_extractor.models.config import (
    ExtractorConfig,
    LicenseOverride,
    PackageRewrite,
    RewriteOriginal,
)


class TestExtractorConfig:
    """Tests for ExtractorConfig model."""

    def test_defaults(self) -> None:
        """Test that every field has a usable default."""
        config = ExtractorConfig()
        assert config.lock_file_name == "lock.toml"
        assert config.source_extensions == [".lua", ".luau"]
        assert config.ignored_header_markers == ["upstream"]
        assert config.banned_packages is None
        assert config.file_overrides is None
        assert config.package_rewrites is None
        assert config.license_dataset is None
        assert config.match_strategy == "sequence"
        assert config.max_workers >= 1

    def test_default_lists_are_independent(self) -> None:
        """Test that default lists are not shared between instances."""
        first = ExtractorConfig()
        first.source_extensions.append(".txt")
        assert ExtractorConfig().source_extensions == [".lua", ".luau"]

    def test_extra_fields_forbidden(self) -> None:
        """Test that unknown fields are rejected."""
        with pytest.raises(ValidationError):
            ExtractorConfig(allowed_licenses=["MIT"])  # type: ignore[call-arg]

    def test_max_workers_positive(self) -> None:
        """Test that max_workers must be at least one."""
        with pytest.raises(ValidationError):
            ExtractorConfig(max_workers=0)

    def test_empty_lock_file_name_rejected(self) -> None:
        """Test that the lock file name cannot be empty."""
        with pytest.raises(ValidationError):
            ExtractorConfig(lock_file_name="")


class TestLicenseOverride:
    """Tests for LicenseOverride model."""

    def test_requires_license_and_reason(self) -> None:
        """Test that both fields are required."""
        with pytest.raises(ValidationError):
            LicenseOverride(license="MIT")  # type: ignore[call-arg]
        override = LicenseOverride(license="MIT", reason="Tiny module")
        assert override.reason == "Tiny module"


class TestPackageRewrite:
    """Tests for PackageRewrite model."""

    def test_originals_default_empty(self) -> None:
        """Test that a rewrite may list no originals."""
        rewrite = PackageRewrite(new_name="evaera-promise", new_version="4.0.0")
        assert rewrite.originals == []

    def test_original_description_optional(self) -> None:
        """Test that an original needs only name and version."""
        original = RewriteOriginal(name="promise", version="8c520dea")
        assert original.description is None
