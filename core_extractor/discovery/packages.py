"""Package discovery inside a raw extracted tree.

A package root is any directory that contains the configured lock file.
Directory naming conventions are never used to decide what is a package.
"""

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from core_extractor.analysis.header import extract_license_header
from core_extractor.discovery.lockfile import read_lock
from core_extractor.exceptions import DiscoveryError
from core_extractor.models.config import ExtractorConfig
from core_extractor.models.package import (
    Package,
    PackageName,
    SourceFile,
    format_registry_name,
)
from core_extractor.models.result import IssueKind, RunIssue

logger = logging.getLogger(__name__)


class DiscoveryResult(BaseModel):
    """Packages found in a tree, plus the problems met on the way."""

    model_config = {"extra": "forbid"}

    packages: list[Package] = Field(default_factory=list)
    issues: list[RunIssue] = Field(default_factory=list)


def find_package_roots(root: Path, lock_file_name: str) -> list[Path]:
    """Find every directory containing a lock file.

    Args:
        root: Top of the raw extracted tree.
        lock_file_name: Name of the lock file marking a package root.

    Returns:
        Sorted package root directories.
    """
    return sorted(
        {lock.parent for lock in root.rglob(lock_file_name) if lock.is_file()}
    )


def content_hash(files: list[SourceFile], lock_content: str) -> str:
    """Hash a package's lock file and source files.

    Files are hashed by relative path and content in sorted order, so the hash
    does not depend on where the package was extracted.
    """
    digest = hashlib.sha256()
    digest.update(lock_content.encode("utf-8"))
    for source_file in sorted(files, key=lambda f: f.path):
        digest.update(b"\0")
        digest.update(source_file.path.encode("utf-8"))
        digest.update(b"\0")
        digest.update(source_file.content.encode("utf-8"))
    return digest.hexdigest()


class PackageDiscoverer:
    """Finds and loads the packages of a raw tree."""

    def __init__(self, config: ExtractorConfig) -> None:
        self.config = config
        self._banned = {
            name.lower() for name in (config.banned_packages or [])
        } | {format_registry_name(name) for name in (config.banned_packages or [])}

    def is_banned(self, path_name: str, registry_name: Optional[str] = None) -> bool:
        """Check a package against the configured banned names."""
        if path_name.lower() in self._banned:
            return True
        return registry_name is not None and registry_name in self._banned

    def collect_source_files(
        self, package_root: Path, nested_roots: list[Path]
    ) -> list[SourceFile]:
        """Read the source files of a package, excluding nested packages.

        Raises:
            DiscoveryError: If a source file cannot be read.
        """
        extensions = {ext.lower() for ext in self.config.source_extensions}
        files: list[SourceFile] = []
        for path in sorted(package_root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in extensions:
                continue
            if any(nested in path.parents for nested in nested_roots):
                continue
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise DiscoveryError(
                    f"Cannot read source file '{path}': {e}", path=str(path)
                ) from e
            files.append(
                SourceFile(
                    path=path.relative_to(package_root).as_posix(),
                    content=content,
                    header=extract_license_header(
                        content, self.config.ignored_header_markers
                    ),
                )
            )
        return files

    def load_package(self, package_root: Path, nested_roots: list[Path]) -> Package:
        """Load one package from its root directory.

        Args:
            package_root: Directory containing the lock file.
            nested_roots: Package roots below this one, whose files belong to
                those packages instead.

        Returns:
            The loaded package, with its base node id.

        Raises:
            DiscoveryError: If the lock file or a source file is invalid.
        """
        lock_path = package_root / self.config.lock_file_name
        lock = read_lock(lock_path, self.config.package_rewrites)
        try:
            lock_content = lock_path.read_text(encoding="utf-8")
        except OSError as e:
            raise DiscoveryError(
                f"Cannot read lock file '{lock_path}': {e}", path=str(lock_path)
            ) from e

        name = PackageName.from_lock(package_root.name, lock.name)
        files = self.collect_source_files(package_root, nested_roots)
        return Package(
            name=name,
            version=lock.version,
            root=package_root,
            files=files,
            dependencies=lock.dependencies,
            content_hash=content_hash(files, lock_content),
            node_id=Package.make_node_id(name.registry_name, lock.version.raw),
        )

    async def discover(self, root: Path) -> DiscoveryResult:
        """Discover and load every package under a tree.

        Lock files and sources are read concurrently, bounded by
        ``max_workers``. Results are merged in sorted root order, so the
        outcome does not depend on completion order.

        Args:
            root: Top of the raw extracted tree.

        Returns:
            DiscoveryResult with deduplicated packages and run issues.

        Raises:
            DiscoveryError: If the root itself is not a readable directory.
        """
        if not root.is_dir():
            raise DiscoveryError(f"Not a directory: '{root}'", path=str(root))

        roots = find_package_roots(root, self.config.lock_file_name)
        logger.info("Found %d package roots under %s", len(roots), root)

        issues: list[RunIssue] = []
        candidates: list[Path] = []
        for package_root in roots:
            if self.is_banned(package_root.name):
                issues.append(_banned_issue(package_root.name, package_root))
            else:
                candidates.append(package_root)

        semaphore = asyncio.Semaphore(self.config.max_workers)

        async def load_one(package_root: Path) -> Union[Package, DiscoveryError]:
            nested = [r for r in roots if package_root in r.parents]
            async with semaphore:
                try:
                    return await asyncio.to_thread(
                        self.load_package, package_root, nested
                    )
                except DiscoveryError as e:
                    return e

        loaded = await asyncio.gather(*(load_one(r) for r in candidates))

        packages: list[Package] = []
        for package_root, item in zip(candidates, loaded):
            if isinstance(item, DiscoveryError):
                logger.warning("Skipping package at %s: %s", package_root, item)
                issues.append(
                    RunIssue(
                        kind=IssueKind.DISCOVERY_ERROR,
                        message=str(item),
                        package=package_root.name,
                        path=item.path or str(package_root),
                    )
                )
            elif self.is_banned(item.name.path_name, item.name.registry_name):
                issues.append(_banned_issue(item.name.registry_name, package_root))
            else:
                packages.append(item)

        packages, duplicate_issues = deduplicate_packages(packages)
        issues.extend(duplicate_issues)
        logger.info(
            "Discovered %d packages (%d issues)", len(packages), len(issues)
        )
        return DiscoveryResult(packages=packages, issues=issues)


def _banned_issue(name: str, package_root: Path) -> RunIssue:
    logger.info("Skipping banned package %s", name)
    return RunIssue(
        kind=IssueKind.BANNED_PACKAGE,
        message=f"Package '{name}' is banned by configuration",
        package=name,
        path=str(package_root),
    )


def deduplicate_packages(
    packages: list[Package],
) -> tuple[list[Package], list[RunIssue]]:
    """Resolve packages sharing a registry name and version.

    Copies with identical content collapse into the first one (by root path).
    Copies with different content are all kept, with node ids suffixed by the
    first eight characters of their content hash.

    Args:
        packages: Loaded packages with base node ids, in root order.

    Returns:
        Tuple of (packages sorted by node id, duplicate issues).
    """
    groups: dict[str, list[Package]] = {}
    for package in packages:
        groups.setdefault(package.node_id, []).append(package)

    result: list[Package] = []
    issues: list[RunIssue] = []
    for node_id in sorted(groups):
        by_hash: dict[str, Package] = {}
        for package in sorted(groups[node_id], key=lambda p: str(p.root)):
            kept = by_hash.get(package.content_hash)
            if kept is None:
                by_hash[package.content_hash] = package
                continue
            logger.debug("Duplicate of %s at %s", node_id, package.root)
            issues.append(
                RunIssue(
                    kind=IssueKind.DUPLICATE_PACKAGE,
                    message=(
                        f"Identical copy of '{node_id}' ignored "
                        f"(kept '{kept.name.path_name}')"
                    ),
                    package=node_id,
                    path=str(package.root),
                )
            )

        distinct = list(by_hash.values())
        if len(distinct) == 1:
            result.append(distinct[0])
            continue

        logger.warning(
            "%d different packages share the id %s", len(distinct), node_id
        )
        for package in distinct:
            result.append(
                package.model_copy(
                    update={"node_id": f"{node_id}+{package.content_hash[:8]}"}
                )
            )

    result.sort(key=lambda p: p.node_id)
    return result, issues
