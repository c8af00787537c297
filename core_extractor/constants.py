"""Constants for core-extractor."""

# Exit codes
EXIT_SUCCESS = 0  # Every package included
EXIT_ISSUES = 1  # Some packages blocked or unlicensed
EXIT_ERROR = 2  # Extraction failed

# A file is licensed only at or above this similarity to a single reference
LICENSED_THRESHOLD = 0.95

DEFAULT_LOCK_FILE_NAME = "lock.toml"
DEFAULT_SOURCE_EXTENSIONS = [".lua", ".luau"]

# Comment lines containing these markers are provenance notes, not licenses
DEFAULT_IGNORED_HEADER_MARKERS = ["upstream"]

DEFAULT_MAX_WORKERS = 8

# Version placeholder for dependencies whose lock entry carries no version
UNKNOWN_VERSION = "?"

LEGAL_DISCLAIMER = (
    "Inclusion decisions are reproducible candidates produced from license "
    "headers only. They do not constitute legal advice or replace manual "
    "legal review."
)
