"""License text normalization shared by the dataset and matching strategies."""

import re

# Comment delimiters at the start of a line: "--", "//", "#", " * ", "/**"
_COMMENT_PREFIX = re.compile(r"^\s*(?:--+|//+|#+|/?\*+/?)", re.MULTILINE)
_COPYRIGHT_LINE = re.compile(r"^\s*(?:copyright|\(c\)|©).*$", re.IGNORECASE | re.MULTILINE)


def normalize_license_text(text: str) -> str:
    """Normalize license text for comparison.

    - Remove comment delimiters left at line starts
    - Replace emails, URLs, years and template placeholders
    - Collapse each copyright line to a single placeholder, since holders
      and years differ between otherwise identical headers
    - Normalize whitespace and convert to lowercase

    Args:
        text: Raw license or header text.

    Returns:
        Normalized text for comparison.
    """
    text = _COMMENT_PREFIX.sub("", text)
    text = re.sub(r"<?[\w.+-]+@[\w-]+\.[\w.-]+>?", "[EMAIL]", text)
    text = re.sub(r"<?https?://[^\s>]+>?", "[URL]", text)
    text = re.sub(r"\b\d{4}(?:\s*[-,]\s*\d{4})*\b", "[YEAR]", text)
    # Template placeholders such as [yyyy], [fullname] or <copyright holders>
    text = re.sub(r"\[(?!YEAR\]|URL\]|EMAIL\])[^\]\n]{1,40}\]", "[HOLDER]", text)
    text = re.sub(r"<[^>\n]{1,40}>", "[HOLDER]", text)
    text = _COPYRIGHT_LINE.sub("copyright [HOLDER]", text)
    text = " ".join(text.split())
    return text.lower()


def tokenize_license_text(text: str) -> set[str]:
    """Split normalized license text into a set of word tokens."""
    return set(re.findall(r"[a-z0-9]+", normalize_license_text(text)))
