"""JSON output formatter for extraction results.

The output is deterministic: packages and issues are sorted and no timestamp
is written, so two runs over the same tree produce identical files.
"""
import json
from typing import Any

from pydantic import ValidationError

from core_extractor import __version__
from core_extractor.config.loader import format_validation_errors
from core_extractor.constants import LEGAL_DISCLAIMER
from core_extractor.exceptions import ConfigurationError
from core_extractor.models.result import ExtractionResult

# Sections of the output that make up the result itself
_RESULT_KEYS = ("packages", "external_dependencies", "cycles", "issues")


class ResultJsonFormatter:
    """Format extraction results as JSON for downstream exporters."""

    def format_result(self, result: ExtractionResult) -> str:
        """Format an extraction result as a JSON string.

        Args:
            result: The result to format.

        Returns:
            JSON string with metadata, summary and the full result.
        """
        output = self._build_output(result)
        return json.dumps(output, indent=2)

    def _build_output(self, result: ExtractionResult) -> dict[str, Any]:
        data = result.model_dump(mode="json")
        return {
            "metadata": {
                "tool_version": __version__,
                "disclaimer": LEGAL_DISCLAIMER,
                "disclaimer_type": "informational",
            },
            "summary": self._build_summary(result),
            **{key: data[key] for key in _RESULT_KEYS},
        }

    def _build_summary(self, result: ExtractionResult) -> dict[str, Any]:
        """Build summary section.

        Args:
            result: The extraction result.

        Returns:
            Dictionary with counts per status, included lines of code and the
            blocking packages.
        """
        return {
            "total_packages": len(result.packages),
            "included": len(result.included),
            "blocked_by_dependency": len(result.blocked),
            "unlicensed": len(result.unlicensed),
            "external_dependencies": len(result.external_dependencies),
            "included_lines_of_code": sum(p.lines_of_code for p in result.included),
            "blocking_packages": result.blocking_packages,
            "has_issues": result.has_issues,
            "overall_status": "ISSUES_FOUND" if result.has_issues else "PASS",
        }


def parse_result_json(content: str) -> ExtractionResult:
    """Parse JSON written by ResultJsonFormatter back into a result.

    Metadata and summary sections are ignored; they are derived from the
    result.

    Args:
        content: JSON text.

    Returns:
        The parsed result.

    Raises:
        ConfigurationError: If the content is not a valid result document.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid result JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid result JSON: expected an object, got {type(data).__name__}"
        )

    try:
        return ExtractionResult.model_validate(
            {key: data[key] for key in _RESULT_KEYS if key in data}
        )
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid result JSON: {format_validation_errors(e)}"
        ) from e
