"""Configuration handling for core-extractor."""
from __future__ import annotations

from core_extractor.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from core_extractor.config.loader import (
    find_config_file,
    load_config,
    load_config_file,
)
from core_extractor.models.config import (
    ExtractorConfig,
    LicenseOverride,
    PackageRewrite,
)

__all__ = [
    "DEFAULT_CONFIG_NAMES",
    "ExtractorConfig",
    "LicenseOverride",
    "PackageRewrite",
    "find_config_file",
    "get_default_config",
    "load_config",
    "load_config_file",
]
