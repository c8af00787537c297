"""Package models for core-extractor.

Provides the naming, versioning and lock-file structures of a discovered
vendor package, plus its source files.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Optional

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, Field, computed_field


def to_kebab_case(name: str) -> str:
    """Convert a vendor package name to kebab-case.

    Args:
        name: Name such as "LuauPolyfill" or "roblox/Emittery".

    Returns:
        Kebab-case name such as "luau-polyfill" or "roblox/emittery".
        Scope separators are preserved.
    """
    segments = []
    for segment in name.split("/"):
        segment = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", segment)
        segment = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", segment)
        segment = re.sub(r"[\s_.]+", "-", segment)
        segments.append(segment.strip("-").lower())
    return "/".join(segments)


class PackageName(BaseModel):
    """All the names a vendor package goes by.

    The path name is the directory name as extracted (for example
    ``Emittery-edcba0e9-2.4.1``); the registry name is normalized and
    publication-safe (``roblox-emittery``).
    """

    model_config = {"extra": "forbid", "frozen": True}

    path_name: str = Field(description="Directory name as extracted")
    registry_name: str = Field(description="Normalized, publication-safe name")
    scope: Optional[str] = Field(default=None, description="Vendor scope, if any")
    scoped_name: Optional[str] = Field(
        default=None, description="Name within the vendor scope, if scoped"
    )

    @classmethod
    def from_lock(cls, path_name: str, lock_name: str) -> "PackageName":
        """Build a package name from its directory and lock-file name.

        Args:
            path_name: Directory name of the package root.
            lock_name: The ``name`` field of the package lock file.

        Returns:
            PackageName with the scope folded into the registry name.
        """
        name = to_kebab_case(lock_name)
        scope: Optional[str] = None
        scoped_name: Optional[str] = None
        if "/" in name:
            scope, scoped_name = name.split("/", 1)
        return cls(
            path_name=path_name,
            registry_name=format_registry_name(lock_name),
            scope=scope,
            scoped_name=scoped_name,
        )


def format_registry_name(name: str) -> str:
    """Normalize a lock-file name into a registry name.

    ``roblox/Emittery`` becomes ``roblox-emittery``.
    """
    return to_kebab_case(name).replace("/", "-")


class VersionKind(str, Enum):
    """How a vendor version string is interpreted."""

    SEMVER = "semver"
    COMMIT = "commit"


class PackageVersion(BaseModel):
    """A pinned package version as written in a lock file.

    Vendors pin either release versions or commit hashes. Comparison is
    always exact on the raw string.
    """

    model_config = {"extra": "forbid", "frozen": True}

    raw: str = Field(min_length=1, description="Version string as written")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def kind(self) -> VersionKind:
        """SEMVER if the string parses as a release version, else COMMIT."""
        if not re.match(r"^v?\d", self.raw):
            return VersionKind.COMMIT
        # Hashes such as "1234c12" would otherwise parse as pre-releases
        if re.fullmatch(r"[0-9a-f]{7,40}", self.raw) and not self.raw.isdigit():
            return VersionKind.COMMIT
        try:
            Version(self.raw)
        except InvalidVersion:
            return VersionKind.COMMIT
        return VersionKind.SEMVER

    def __str__(self) -> str:
        return self.raw


class LockDependency(BaseModel):
    """One dependency entry of a package lock file."""

    model_config = {"extra": "forbid"}

    path_name: str = Field(description="Alias the declaring package uses")
    registry_name: str = Field(description="Normalized registry name")
    version: Optional[PackageVersion] = Field(
        default=None, description="Pinned version, None if unresolvable"
    )
    source: Optional[str] = Field(default=None, description="Upstream source")
    patched: bool = Field(default=False, description="Marked <patched> upstream")
    rewritten_from: Optional[str] = Field(
        default=None,
        description="Original name@version when a package rewrite applied",
    )

    @property
    def display(self) -> str:
        """Format as ``name@version``."""
        version = self.version.raw if self.version else "?"
        return f"{self.registry_name}@{version}"


class PackageLock(BaseModel):
    """Parsed package lock file."""

    model_config = {"extra": "forbid"}

    name: str = Field(min_length=1, description="Package name as locked")
    version: PackageVersion = Field(description="Package version as locked")
    commit: Optional[str] = Field(default=None, description="Upstream commit")
    source: Optional[str] = Field(default=None, description="Upstream source")
    dependencies: list[LockDependency] = Field(
        default_factory=list, description="Pinned dependencies"
    )


class SourceFile(BaseModel):
    """A source file inside a package.

    The header is the leading comment block, extracted once when the file
    is read. License verdicts are computed separately for each run.
    """

    model_config = {"extra": "forbid", "frozen": True}

    path: str = Field(description="POSIX path relative to the package root")
    content: str = Field(description="Raw file content")
    header: str = Field(default="", description="Leading comment block")


class Package(BaseModel):
    """A discovered vendor package."""

    model_config = {"extra": "forbid"}

    name: PackageName
    version: PackageVersion
    root: Path = Field(description="Package root directory")
    files: list[SourceFile] = Field(default_factory=list)
    dependencies: list[LockDependency] = Field(default_factory=list)
    content_hash: str = Field(description="sha256 over file paths and contents")
    node_id: str = Field(description="Graph node identifier")

    @staticmethod
    def make_node_id(registry_name: str, version: str) -> str:
        """Format the base graph identifier of a package."""
        return f"{registry_name}@{version}"

    @property
    def lines_of_code(self) -> int:
        """Total lines across the package's source files."""
        return sum(len(source_file.content.splitlines()) for source_file in self.files)
