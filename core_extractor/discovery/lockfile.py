"""Lock file parsing.

A lock file marks a package root and pins its dependencies. Dependencies come
in two forms::

    dependencies = [
        "LuauPolyfill LuauPolyfill 1.1.0 url+https://github.com/roblox/luau-polyfill",
        "Promise <patched> Promise 8c520dea git+https://github.com/roblox/promise-upgrade#v0.1.0",
        { name = "Emittery", version = "2.4.1", path_name = "Emittery" },
    ]

The string form is ``<path_name> [<patched>] <registry_name> <version>
[<source>]``.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from core_extractor.config.loader import format_validation_errors
from core_extractor.exceptions import DiscoveryError
from core_extractor.models.config import PackageRewrite
from core_extractor.models.package import (
    LockDependency,
    PackageLock,
    PackageVersion,
    format_registry_name,
)

logger = logging.getLogger(__name__)

PATCHED_MARKER = "<patched>"


def resolve_rewrite(
    registry_name: str,
    version: Optional[str],
    rewrites: Optional[Mapping[str, PackageRewrite]],
) -> Optional[tuple[str, str]]:
    """Find the replacement of a package, if a rewrite covers it.

    Args:
        registry_name: Normalized registry name of the dependency.
        version: Pinned version of the dependency.
        rewrites: Configured package rewrites.

    Returns:
        ``(new_name, new_version)`` of the replacement, or None.
    """
    if not rewrites or version is None:
        return None
    for key in sorted(rewrites):
        rewrite = rewrites[key]
        for original in rewrite.originals:
            if (
                format_registry_name(original.name) == registry_name
                and original.version == version
            ):
                return rewrite.new_name, rewrite.new_version
    return None


def _make_dependency(
    path_name: str,
    name: str,
    version: Optional[str],
    source: Optional[str],
    patched: bool,
    rewrites: Optional[Mapping[str, PackageRewrite]],
) -> LockDependency:
    registry_name = format_registry_name(name)
    rewritten_from: Optional[str] = None

    replacement = resolve_rewrite(registry_name, version, rewrites)
    if replacement is not None:
        rewritten_from = f"{registry_name}@{version}"
        registry_name, version = replacement

    return LockDependency(
        path_name=path_name,
        registry_name=registry_name,
        version=PackageVersion(raw=version) if version else None,
        source=source,
        patched=patched,
        rewritten_from=rewritten_from,
    )


def parse_dependency_string(
    entry: str,
    rewrites: Optional[Mapping[str, PackageRewrite]] = None,
) -> LockDependency:
    """Parse a dependency in the vendor string form.

    A missing version is not an error here: it yields a dependency without
    a version, which the graph builder reports.

    Raises:
        ValueError: If the entry has no registry name.
    """
    parts = entry.split()
    if len(parts) < 2:
        raise ValueError(f"Expected path name and registry name in '{entry}'")

    path_name, rest = parts[0], parts[1:]
    patched = rest[0] == PATCHED_MARKER
    if patched:
        rest = rest[1:]
        if not rest:
            raise ValueError(f"Expected registry name after {PATCHED_MARKER} in '{entry}'")

    name = rest[0]
    version = rest[1] if len(rest) > 1 else None
    source = " ".join(rest[2:]) or None
    return _make_dependency(path_name, name, version, source, patched, rewrites)


def parse_dependency_table(
    entry: Mapping[str, Any],
    rewrites: Optional[Mapping[str, PackageRewrite]] = None,
) -> LockDependency:
    """Parse a dependency in the table form.

    Raises:
        ValueError: If the table has no name.
    """
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"Dependency table without a name: {dict(entry)}")
    version = entry.get("version")
    return _make_dependency(
        path_name=str(entry.get("path_name") or name),
        name=name,
        version=str(version) if version not in (None, "") else None,
        source=entry.get("source"),
        patched=bool(entry.get("patched", False)),
        rewrites=rewrites,
    )


def parse_lock(
    content: str,
    path: Optional[Path] = None,
    rewrites: Optional[Mapping[str, PackageRewrite]] = None,
) -> PackageLock:
    """Parse lock file content.

    Args:
        content: TOML text.
        path: Where the content came from, for error messages.
        rewrites: Configured package rewrites applied to dependencies.

    Returns:
        The parsed lock.

    Raises:
        DiscoveryError: If the TOML is invalid or the lock is structurally
            invalid.
    """
    where = str(path) if path is not None else "<lock>"
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise DiscoveryError(f"Invalid TOML in '{where}': {e}", path=where) from e

    raw_dependencies = data.get("dependencies") or []
    if not isinstance(raw_dependencies, list):
        raise DiscoveryError(
            f"Invalid lock '{where}': dependencies must be a list", path=where
        )

    dependencies: list[LockDependency] = []
    for entry in raw_dependencies:
        try:
            if isinstance(entry, str):
                dependencies.append(parse_dependency_string(entry, rewrites))
            elif isinstance(entry, dict):
                dependencies.append(parse_dependency_table(entry, rewrites))
            else:
                raise ValueError(f"Unsupported dependency entry: {entry!r}")
        except ValueError as e:
            raise DiscoveryError(f"Invalid lock '{where}': {e}", path=where) from e

    name = data.get("name")
    version = data.get("version")
    for field, value in (("name", name), ("version", version)):
        if value is None or value == "":
            raise DiscoveryError(f"Invalid lock '{where}': missing {field}", path=where)

    try:
        return PackageLock(
            name=name,
            version=PackageVersion(raw=str(version)),
            commit=data.get("commit"),
            source=data.get("source"),
            dependencies=dependencies,
        )
    except ValidationError as e:
        raise DiscoveryError(
            f"Invalid lock '{where}': {format_validation_errors(e)}", path=where
        ) from e


def read_lock(
    path: Path,
    rewrites: Optional[Mapping[str, PackageRewrite]] = None,
) -> PackageLock:
    """Read and parse a lock file from disk.

    Raises:
        DiscoveryError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DiscoveryError(f"Cannot read lock file '{path}': {e}", path=str(path)) from e
    lock = parse_lock(content, path, rewrites)
    logger.debug(
        "Parsed lock %s: %s@%s with %d dependencies",
        path,
        lock.name,
        lock.version,
        len(lock.dependencies),
    )
    return lock
