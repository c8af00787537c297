"""core-extractor: license-aware extraction of vendor code packages."""

__version__ = "0.1.0"
