"""Custom exceptions for core-extractor."""


class ExtractorError(Exception):
    """Base exception for all core-extractor errors."""

    pass


class ConfigurationError(ExtractorError):
    """Exception raised when configuration or a license dataset is invalid."""

    pass


class DiscoveryError(ExtractorError):
    """Exception raised when a candidate package cannot be read.

    Non-fatal: the package is skipped and the run continues.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class GraphInconsistencyError(ExtractorError):
    """Exception raised when a lock entry has no resolvable version.

    Non-fatal: the dependency is treated as an external unknown.
    """

    def __init__(self, message: str, package: str | None = None) -> None:
        super().__init__(message)
        self.package = package


class NoPackagesFoundError(ExtractorError):
    """Exception raised when discovery finds nothing to resolve.

    Carries the messages of candidates that discovery skipped, so that a tree
    whose every package failed to load can be told apart from an empty one.
    """

    def __init__(self, message: str, skipped: list[str] | None = None) -> None:
        self.skipped = list(skipped or [])
        if self.skipped:
            message = (
                f"{message}; {len(self.skipped)} candidate(s) skipped: "
                + "; ".join(self.skipped)
            )
        super().__init__(message)


class ExtractionCancelled(ExtractorError):
    """Exception raised when a run is cancelled between stages."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"Extraction cancelled before stage '{stage}'")
        self.stage = stage
