"""Configuration file discovery and loading for core-extractor."""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from core_extractor.config.defaults import DEFAULT_CONFIG_NAMES, get_default_config
from core_extractor.exceptions import ConfigurationError
from core_extractor.models.config import ExtractorConfig

logger = logging.getLogger(__name__)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file in the specified directory.

    Searches for `.core-extractor.yaml` first, then `.core-extractor.yml`.

    Args:
        start_dir: Directory to search. Defaults to current working directory.

    Returns:
        Path to the configuration file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        config_path = search_dir / name
        if config_path.exists():
            return config_path
    return None


def load_config_file(path: Path) -> ExtractorConfig:
    """Load and validate configuration from a YAML file.

    Args:
        path: Path to the configuration file.

    Returns:
        Validated ExtractorConfig instance.

    Raises:
        ConfigurationError: If file cannot be read, has invalid YAML,
            or fails Pydantic validation.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file '{path}': {e}"
        ) from e

    if not content.strip():
        return get_default_config()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in '{path}': {e}") from e

    # Comment-only files parse to None
    if data is None:
        return get_default_config()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{path}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )

    try:
        config = ExtractorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {format_validation_errors(e)}"
        ) from e

    logger.debug("Loaded configuration from %s", path)
    return config


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def load_config(config_path: str | None = None) -> ExtractorConfig:
    """Load configuration from file or use defaults.

    If a config_path is provided, loads from that file. Otherwise, searches
    the current directory, falling back to defaults.

    Args:
        config_path: Optional path to configuration file.

    Returns:
        ExtractorConfig with loaded or default values.

    Raises:
        ConfigurationError: If the specified or discovered file is invalid.
    """
    if config_path is not None:
        return load_config_file(Path(config_path))

    discovered = find_config_file()
    if discovered is not None:
        return load_config_file(discovered)

    return get_default_config()
