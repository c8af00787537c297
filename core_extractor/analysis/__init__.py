"""License analysis: header matching, inclusion resolution and result diffs."""

from core_extractor.analysis.dataset import (
    LicenseDataset,
    LicenseReference,
    builtin_dataset,
    load_dataset,
)
from core_extractor.analysis.diff import ResultDiff, StatusChange, diff_results
from core_extractor.analysis.header import extract_license_header
from core_extractor.analysis.matcher import (
    LicenseClassifier,
    LicenseMatch,
    MatchStrategy,
    classify_header,
    get_strategy,
    sequence_match,
    token_match,
)
from core_extractor.analysis.resolver import (
    Downgrade,
    ResolutionOutcome,
    resolve_inclusion,
)

__all__ = [
    "Downgrade",
    "LicenseClassifier",
    "LicenseDataset",
    "LicenseMatch",
    "LicenseReference",
    "MatchStrategy",
    "ResolutionOutcome",
    "ResultDiff",
    "StatusChange",
    "builtin_dataset",
    "classify_header",
    "diff_results",
    "extract_license_header",
    "get_strategy",
    "load_dataset",
    "resolve_inclusion",
    "sequence_match",
    "token_match",
]
