"""Shared fixtures for core-extractor tests."""

import json
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest
from click.testing import CliRunner

MIT_SOURCE = """-- ROBLOX upstream: https://github.com/graphql/graphql-js/blob/v15.5.1/src/graphql.js
--[[
 * Copyright (c) GraphQL Contributors
 *
 * This source code is licensed under the MIT license found in the
 * LICENSE file in the root directory of this source tree.
]]
local graphql = {}
return graphql
"""

APACHE_SOURCE = """-- Copyright 2021 Roblox Corporation
--
-- Licensed under the Apache License, Version 2.0 (the "License");
-- you may not use this file except in compliance with the License.
-- You may obtain a copy of the License at
--
--     http://www.apache.org/licenses/LICENSE-2.0
--
-- Unless required by applicable law or agreed to in writing, software
-- distributed under the License is distributed on an "AS IS" BASIS,
-- WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
-- See the License for the specific language governing permissions and
-- limitations under the License.
local module = {}
return module
"""

UNLICENSED_SOURCE = """-- Internal helper, do not distribute.
local helper = {}
return helper
"""

PackageFactory = Callable[..., Path]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mit_source() -> str:
    """Source file with an MIT header."""
    return MIT_SOURCE


@pytest.fixture
def apache_source() -> str:
    """Source file with an Apache-2.0 header."""
    return APACHE_SOURCE


@pytest.fixture
def unlicensed_source() -> str:
    """Source file without a license header."""
    return UNLICENSED_SOURCE


def _lock_text(
    name: str, version: str, dependencies: Sequence[str], extra: str = ""
) -> str:
    lines = [
        f"name = {json.dumps(name)}",
        f"version = {json.dumps(version)}",
        'commit = "792ffec6ca98a6d725d25d678d693f486c1d2c75"',
        'source = "url+https://github.com/roblox/example"',
    ]
    if extra:
        lines.append(extra)
    lines.append("dependencies = [")
    lines.extend(f"    {json.dumps(dep)}," for dep in dependencies)
    lines.append("]")
    return "\n".join(lines) + "\n"


@pytest.fixture
def raw_tree(tmp_path: Path) -> Path:
    """Empty directory standing for the raw extracted tree."""
    root = tmp_path / "raw"
    root.mkdir()
    return root


@pytest.fixture
def package_factory(raw_tree: Path) -> PackageFactory:
    """Create packages (a lock file plus source files) inside raw_tree.

    Dependencies use the vendor string form, e.g. ``"Dep Dep 1.0.0"``.
    """

    def make(
        dir_name: str,
        name: str,
        version: str = "1.0.0",
        dependencies: Sequence[str] = (),
        files: Optional[dict[str, str]] = None,
        parent: Optional[Path] = None,
    ) -> Path:
        package_root = (parent or raw_tree) / dir_name
        package_root.mkdir(parents=True, exist_ok=True)
        (package_root / "lock.toml").write_text(
            _lock_text(name, version, dependencies), encoding="utf-8"
        )
        for rel_path, content in (files if files is not None else {"src/init.lua": MIT_SOURCE}).items():
            file_path = package_root / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        return package_root

    return make
