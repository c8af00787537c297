"""Default configuration values for core-extractor."""

from __future__ import annotations

from core_extractor.models.config import ExtractorConfig

# Default configuration file names to search for
DEFAULT_CONFIG_NAMES = [".core-extractor.yaml", ".core-extractor.yml"]


def get_default_config() -> ExtractorConfig:
    """Get the default configuration.

    Returns:
        ExtractorConfig with every field at its default.
    """
    return ExtractorConfig()
