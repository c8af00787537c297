"""License header matching.

Compares a file's license header with every reference of the license dataset
and keeps the best single match. A file is licensed only if that one
reference reaches LICENSED_THRESHOLD; partial matches to several references
never combine.
"""

from difflib import SequenceMatcher
from typing import Callable, Mapping, NamedTuple, Optional

from core_extractor.analysis.dataset import LicenseDataset
from core_extractor.analysis.normalize import normalize_license_text, tokenize_license_text
from core_extractor.models.config import LicenseOverride
from core_extractor.models.package import SourceFile
from core_extractor.models.verdict import LicenseVerdict


class LicenseMatch(NamedTuple):
    """Best reference match of a header."""

    license_id: Optional[str]
    score: float


NO_MATCH = LicenseMatch(license_id=None, score=0.0)

# (header_text, dataset) -> best match
MatchStrategy = Callable[[str, LicenseDataset], LicenseMatch]


def sequence_match(header: str, dataset: LicenseDataset) -> LicenseMatch:
    """Match a header using difflib.SequenceMatcher similarity.

    References whose key phrases are missing from the header are never
    scored.

    ``quick_ratio()`` is an upper bound of ``ratio()``, so references whose
    bound cannot beat the current best are skipped.

    Args:
        header: Extracted license header.
        dataset: Reference licenses.

    Returns:
        The best scoring reference, or NO_MATCH for an empty header.
    """
    normalized = normalize_license_text(header)
    if not normalized:
        return NO_MATCH

    best = NO_MATCH
    matcher = SequenceMatcher(None, b=normalized, autojunk=False)
    for license_id, reference in dataset.normalized(normalized):
        matcher.set_seq1(reference)
        if matcher.real_quick_ratio() <= best.score:
            continue
        if matcher.quick_ratio() <= best.score:
            continue
        score = matcher.ratio()
        if score > best.score:
            best = LicenseMatch(license_id=license_id, score=score)
    return best


def token_match(header: str, dataset: LicenseDataset) -> LicenseMatch:
    """Match a header by Jaccard overlap of word tokens.

    Word order is ignored, which makes this strategy more tolerant of
    reflowed headers and stricter about missing words.
    """
    tokens = tokenize_license_text(header)
    if not tokens:
        return NO_MATCH

    best = NO_MATCH
    for license_id, reference in dataset.token_sets(normalize_license_text(header)):
        union = tokens | reference
        if not union:
            continue
        score = len(tokens & reference) / len(union)
        if score > best.score:
            best = LicenseMatch(license_id=license_id, score=score)
    return best


STRATEGIES: dict[str, MatchStrategy] = {
    "sequence": sequence_match,
    "token": token_match,
}


def get_strategy(name: str) -> MatchStrategy:
    """Look up a matching strategy by its configuration name.

    Raises:
        KeyError: If no strategy has that name.
    """
    return STRATEGIES[name]


def classify_header(
    header: str,
    dataset: LicenseDataset,
    strategy: MatchStrategy = sequence_match,
) -> LicenseVerdict:
    """Classify a license header against the dataset.

    Args:
        header: Extracted license header (may be empty).
        dataset: Reference licenses.
        strategy: Matching strategy.

    Returns:
        LicenseVerdict for the best single reference. An empty header or
        empty dataset yields no match with confidence 0.0.
    """
    if not header.strip() or not dataset:
        return LicenseVerdict.unlicensed()

    match = strategy(header, dataset)
    if match.license_id is None:
        return LicenseVerdict.unlicensed()
    # Strategies may return tiny float overshoots
    confidence = min(max(match.score, 0.0), 1.0)
    return LicenseVerdict(matched_license_id=match.license_id, confidence=confidence)


class LicenseClassifier:
    """Classifies source files against a dataset.

    Holds no mutable state, so a single instance is shared by all concurrent
    classification tasks of a run.
    """

    def __init__(
        self,
        dataset: LicenseDataset,
        strategy: MatchStrategy = sequence_match,
        overrides: Optional[Mapping[str, LicenseOverride]] = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            dataset: Reference licenses.
            strategy: Matching strategy.
            overrides: Manual license overrides keyed by source path suffix,
                for files too small to carry a header.
        """
        self.dataset = dataset
        self.strategy = strategy
        # Longest suffix first so the most specific override wins
        self._overrides = sorted(
            (overrides or {}).items(), key=lambda item: (-len(item[0]), item[0])
        )

    def find_override(self, path: str) -> Optional[LicenseOverride]:
        """Find the configured override for a file path, if any."""
        for suffix, override in self._overrides:
            if path == suffix or path.endswith("/" + suffix.lstrip("/")):
                return override
        return None

    def classify_file(self, source_file: SourceFile, package_path: str = "") -> LicenseVerdict:
        """Classify one source file.

        Args:
            source_file: The file to classify.
            package_path: Path name of the owning package, prefixed to the
                file path when looking up overrides.

        Returns:
            LicenseVerdict for the file.
        """
        full_path = (
            f"{package_path}/{source_file.path}" if package_path else source_file.path
        )
        override = self.find_override(full_path)
        if override is not None:
            return LicenseVerdict(
                matched_license_id=override.license,
                confidence=1.0,
                override_reason=override.reason,
            )
        return classify_header(source_file.header, self.dataset, self.strategy)
