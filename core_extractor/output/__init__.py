"""Output formatters for core-extractor."""

from core_extractor.output.result_json import ResultJsonFormatter, parse_result_json
from core_extractor.output.terminal import TerminalFormatter
from core_extractor.output.tree import TreeFormatter

__all__ = [
    "ResultJsonFormatter",
    "TerminalFormatter",
    "TreeFormatter",
    "parse_result_json",
]
