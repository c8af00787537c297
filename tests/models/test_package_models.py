"""Tests for package models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from core_extractor.models.package import (
    LockDependency,
    Package,
    PackageName,
    PackageVersion,
    SourceFile,
    VersionKind,
    format_registry_name,
    to_kebab_case,
)


class TestKebabCase:
    """Tests for to_kebab_case and format_registry_name."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("LuauPolyfill", "luau-polyfill"),
            ("ChalkLua", "chalk-lua"),
            ("JSONParser", "json-parser"),
            ("jest_roblox", "jest-roblox"),
            ("roblox/Emittery", "roblox/emittery"),
            ("promise", "promise"),
        ],
    )
    def test_to_kebab_case(self, name: str, expected: str) -> None:
        """Test conversion of vendor names to kebab-case."""
        assert to_kebab_case(name) == expected

    def test_registry_name_folds_scope(self) -> None:
        """Test that the scope separator becomes a dash."""
        assert format_registry_name("roblox/Emittery") == "roblox-emittery"


class TestPackageName:
    """Tests for PackageName model."""

    def test_from_lock_unscoped(self) -> None:
        """Test names of an unscoped package."""
        name = PackageName.from_lock("LuauPolyfill-2fca3173-1.1.0", "LuauPolyfill")
        assert name.path_name == "LuauPolyfill-2fca3173-1.1.0"
        assert name.registry_name == "luau-polyfill"
        assert name.scope is None
        assert name.scoped_name is None

    def test_from_lock_scoped(self) -> None:
        """Test names of a scoped package."""
        name = PackageName.from_lock("Emittery", "roblox/Emittery")
        assert name.scope == "roblox"
        assert name.scoped_name == "emittery"
        assert name.registry_name == "roblox-emittery"

    def test_frozen(self) -> None:
        """Test that names cannot be mutated."""
        name = PackageName.from_lock("A", "A")
        with pytest.raises(ValidationError):
            name.registry_name = "b"  # type: ignore[misc]


class TestPackageVersion:
    """Tests for PackageVersion model."""

    @pytest.mark.parametrize(
        "raw,kind",
        [
            ("1.1.0", VersionKind.SEMVER),
            ("v2.0.0", VersionKind.SEMVER),
            ("0.1.3", VersionKind.SEMVER),
            ("8c520dea", VersionKind.COMMIT),
            ("1234c12", VersionKind.COMMIT),
            ("792ffec6ca98a6d725d25d678d693f486c1d2c75", VersionKind.COMMIT),
        ],
    )
    def test_kind(self, raw: str, kind: VersionKind) -> None:
        """Test that release versions and commit hashes are told apart."""
        assert PackageVersion(raw=raw).kind == kind

    def test_str(self) -> None:
        """Test that str() gives the raw version."""
        assert str(PackageVersion(raw="1.0.0")) == "1.0.0"

    def test_empty_rejected(self) -> None:
        """Test that an empty version is invalid."""
        with pytest.raises(ValidationError):
            PackageVersion(raw="")

    def test_exact_equality(self) -> None:
        """Test that versions compare on the raw string only."""
        assert PackageVersion(raw="1.0.0") == PackageVersion(raw="1.0.0")
        assert PackageVersion(raw="1.0") != PackageVersion(raw="1.0.0")


class TestLockDependency:
    """Tests for LockDependency model."""

    def test_display(self) -> None:
        """Test the name@version rendering."""
        dep = LockDependency(
            path_name="Lib", registry_name="lib", version=PackageVersion(raw="1.0.0")
        )
        assert dep.display == "lib@1.0.0"

    def test_display_unknown_version(self) -> None:
        """Test the rendering of a dependency without a version."""
        assert LockDependency(path_name="Lib", registry_name="lib").display == "lib@?"


class TestPackage:
    """Tests for Package model."""

    def test_make_node_id(self) -> None:
        """Test the base node id format."""
        assert Package.make_node_id("roblox-emittery", "2.4.1") == "roblox-emittery@2.4.1"

    def test_extra_fields_forbidden(self) -> None:
        """Test that unknown fields are rejected."""
        with pytest.raises(ValidationError):
            Package(
                name=PackageName.from_lock("A", "A"),
                version=PackageVersion(raw="1.0.0"),
                root=Path("/raw/A"),
                content_hash="0" * 64,
                node_id="a@1.0.0",
                license="MIT",  # type: ignore[call-arg]
            )

    def test_lines_of_code(self) -> None:
        """Test that lines are summed over source files."""
        package = Package(
            name=PackageName.from_lock("A", "A"),
            version=PackageVersion(raw="1.0.0"),
            root=Path("/raw/A"),
            files=[
                SourceFile(path="a.lua", content="local a = 1\nreturn a\n"),
                SourceFile(path="b.lua", content="return nil"),
                SourceFile(path="c.lua", content=""),
            ],
            content_hash="0" * 64,
            node_id="a@1.0.0",
        )
        assert package.lines_of_code == 3

    def test_source_file_defaults(self) -> None:
        """Test that a source file has an empty header by default."""
        assert SourceFile(path="src/init.lua", content="").header == ""
