"""Reference license dataset.

The dataset is the only source of truth for what counts as a license. It is
loaded once per run and never mutated; matching strategies read the
pre-normalized reference texts it holds.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml
from license_expression import ExpressionError, get_spdx_licensing
from pydantic import BaseModel, Field, ValidationError

from core_extractor.analysis.normalize import normalize_license_text, tokenize_license_text
from core_extractor.config.loader import format_validation_errors
from core_extractor.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Initialize SPDX licensing for id normalization
_licensing = get_spdx_licensing()


class LicenseReference(BaseModel):
    """A reference license text."""

    model_config = {"extra": "forbid", "frozen": True}

    license_id: str = Field(min_length=1, description="SPDX license identifier")
    text: str = Field(min_length=1, description="Reference header or license text")
    key_phrases: tuple[str, ...] = Field(
        default=(),
        description="Phrases naming the license; one must appear in a header "
        "before the reference can match it",
    )


def normalize_license_id(license_id: str) -> str:
    """Normalize a license identifier to its SPDX key.

    Unknown identifiers are returned stripped but otherwise unchanged, so that
    private datasets can use their own ids.

    Args:
        license_id: License identifier as written in the dataset.

    Returns:
        Normalized SPDX key, or the stripped input if it is not valid SPDX.
    """
    license_id = license_id.strip()
    try:
        parsed = _licensing.parse(license_id, validate=True)
    except ExpressionError:
        return license_id
    if parsed is not None and hasattr(parsed, "key"):
        return str(parsed.key)
    return license_id


class LicenseDataset:
    """Immutable collection of reference licenses.

    Reference texts are normalized once at construction so that concurrent
    classifications share them read-only.
    """

    def __init__(self, references: Iterable[LicenseReference]) -> None:
        self._references = tuple(
            ref.model_copy(update={"license_id": normalize_license_id(ref.license_id)})
            for ref in references
        )
        self._normalized = tuple(
            normalize_license_text(ref.text) for ref in self._references
        )
        self._tokens = tuple(
            frozenset(tokenize_license_text(ref.text)) for ref in self._references
        )
        self._phrases = tuple(
            tuple(normalize_license_text(p) for p in ref.key_phrases if p.strip())
            for ref in self._references
        )

    @property
    def references(self) -> tuple[LicenseReference, ...]:
        return self._references

    @property
    def license_ids(self) -> list[str]:
        """Distinct license ids, sorted."""
        return sorted({ref.license_id for ref in self._references})

    def _admits(self, index: int, header: Optional[str]) -> bool:
        phrases = self._phrases[index]
        if header is None or not phrases:
            return True
        return any(phrase in header for phrase in phrases)

    def normalized(self, header: Optional[str] = None) -> Iterator[tuple[str, str]]:
        """Yield ``(license_id, normalized_text)`` for each reference.

        Args:
            header: Normalized header text. When given, references whose key
                phrases are all missing from it are skipped, so a header naming
                another license cannot match a near-identical template.
        """
        for index, (ref, text) in enumerate(zip(self._references, self._normalized)):
            if self._admits(index, header):
                yield ref.license_id, text

    def token_sets(
        self, header: Optional[str] = None
    ) -> Iterator[tuple[str, frozenset[str]]]:
        """Yield ``(license_id, tokens)`` for each reference admitted by header."""
        for index, (ref, tokens) in enumerate(zip(self._references, self._tokens)):
            if self._admits(index, header):
                yield ref.license_id, tokens

    def __len__(self) -> int:
        return len(self._references)

    def __bool__(self) -> bool:
        return bool(self._references)


# Header forms commonly found at the top of vendor source files. Full
# license texts are included as well since some vendors paste them verbatim.
# The short forms differ only in the license name, so each reference carries
# the phrase that names its license.
BUILTIN_REFERENCES: list[tuple[str, str, tuple[str, ...]]] = [
    (
        "MIT",
        """Copyright (c) <copyright holders>

This source code is licensed under the MIT license found in the
LICENSE file in the root directory of this source tree.""",
        ("licensed under the MIT license",),
    ),
    (
        "MIT",
        """MIT License

Copyright (c) <year> <copyright holders>

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.""",
        ("Permission is hereby granted, free of charge",),
    ),
    (
        "Apache-2.0",
        """Copyright [yyyy] [name of copyright owner]

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.""",
        ("Licensed under the Apache License, Version 2.0",),
    ),
    (
        "BSD-3-Clause",
        """Copyright (c) <copyright holders>

This source code is licensed under the BSD-style license found in the
LICENSE file in the root directory of this source tree.""",
        ("licensed under the BSD-style license",),
    ),
    (
        "BSD-3-Clause",
        """Copyright (c) <year>, <copyright holders>

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
   list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
   this list of conditions and the following disclaimer in the documentation
   and/or other materials provided with the distribution.

3. Neither the name of the copyright holder nor the names of its
   contributors may be used to endorse or promote products derived from
   this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.""",
        ("Redistribution and use in source and binary forms",),
    ),
]


def builtin_dataset() -> LicenseDataset:
    """Dataset of common license header forms (MIT, Apache-2.0, BSD-3-Clause)."""
    return LicenseDataset(
        LicenseReference(license_id=license_id, text=text, key_phrases=phrases)
        for license_id, text, phrases in BUILTIN_REFERENCES
    )


def _references_from_data(data: Any, source: Path) -> list[LicenseReference]:
    """Convert parsed YAML/JSON data into references.

    Accepts a list of ``{license_id, text, key_phrases?}`` entries, a ``{"licenses": [...]}``
    wrapper, or a mapping of license id to a text or list of texts.
    """
    if isinstance(data, dict) and isinstance(data.get("licenses"), list):
        data = data["licenses"]

    entries: list[dict[str, Any]] = []
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        for license_id, texts in data.items():
            if isinstance(texts, str):
                texts = [texts]
            if not isinstance(texts, list):
                raise ConfigurationError(
                    f"Invalid license dataset '{source}': "
                    f"expected text or list of texts for '{license_id}'"
                )
            entries.extend({"license_id": license_id, "text": t} for t in texts)
    else:
        raise ConfigurationError(
            f"Invalid license dataset '{source}': "
            f"expected a list or mapping at root level, got {type(data).__name__}"
        )

    try:
        return [LicenseReference.model_validate(entry) for entry in entries]
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid license dataset '{source}': {format_validation_errors(e)}"
        ) from e


def _references_from_spdx_details(directory: Path) -> list[LicenseReference]:
    """Read an SPDX ``license-list-data/json/details`` directory.

    Each non-deprecated license contributes its standard header (when it has
    one) and its full text as separate references.
    """
    references: list[LicenseReference] = []
    for path in sorted(directory.glob("*.json")):
        try:
            details = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read SPDX license details '{path}': {e}"
            ) from e

        license_id: Optional[str] = details.get("licenseId")
        if not license_id or details.get("isDeprecatedLicenseId"):
            continue
        for key in ("standardLicenseHeader", "licenseText"):
            text = details.get(key)
            if isinstance(text, str) and text.strip():
                references.append(LicenseReference(license_id=license_id, text=text))
    return references


def load_dataset(path: Path) -> LicenseDataset:
    """Load a license dataset from a file or SPDX details directory.

    Args:
        path: A YAML/JSON file, or a directory of SPDX license details.

    Returns:
        The loaded dataset.

    Raises:
        ConfigurationError: If the path cannot be read, is malformed, or
            contains no references.
    """
    if path.is_dir():
        references = _references_from_spdx_details(path)
    else:
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read license dataset '{path}': {e}"
            ) from e
        try:
            # YAML is a superset of JSON
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid license dataset syntax in '{path}': {e}"
            ) from e
        references = _references_from_data(data, path)

    if not references:
        raise ConfigurationError(f"License dataset '{path}' contains no licenses")

    dataset = LicenseDataset(references)
    logger.info(
        "Loaded %d license references (%d licenses) from %s",
        len(dataset),
        len(dataset.license_ids),
        path,
    )
    return dataset
