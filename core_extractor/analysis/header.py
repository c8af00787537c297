"""License header extraction.

Finds the leading comment block of a source file and strips comment
delimiters so that only the license text remains.
"""

import re
from typing import Optional, Sequence

from core_extractor.constants import DEFAULT_IGNORED_HEADER_MARKERS

# Block comment openers and the pattern that closes them
_LUA_BLOCK_OPEN = re.compile(r"^--\[(=*)\[")
_C_BLOCK_OPEN = "/*"
_C_BLOCK_CLOSE = "*/"

# Checked in order; "--" must come after Lua block openers are ruled out
_LINE_COMMENT_MARKERS = ("--", "//", "#")

# Decoration left over from comment styles such as " * text" or "/** text"
_DECORATION = "*/\\"


def _strip_decoration(text: str) -> str:
    """Remove leading/trailing comment decoration from a line of comment text."""
    text = text.strip()
    text = text.lstrip(_DECORATION + "-").strip()
    return text.rstrip(_DECORATION).strip()


def _block_close_for(line: str) -> Optional[tuple[str, str]]:
    """Return (opener, closer) if the line opens a block comment."""
    match = _LUA_BLOCK_OPEN.match(line)
    if match:
        return match.group(0), f"]{match.group(1)}]"
    if line.startswith(_C_BLOCK_OPEN):
        return _C_BLOCK_OPEN, _C_BLOCK_CLOSE
    return None


def _line_comment_marker(line: str) -> Optional[str]:
    for marker in _LINE_COMMENT_MARKERS:
        if line.startswith(marker):
            return marker
    return None


def extract_license_header(
    source: str,
    ignored_markers: Optional[Sequence[str]] = None,
) -> str:
    """Extract the leading comment block of a source file.

    The block starts at the first line and ends at the first line of code,
    or where a block comment holding license text closes.
    Comment delimiters are removed. Lines containing an ignored marker
    (provenance notes such as ``-- ROBLOX upstream: <url>``) are dropped
    until the license text starts; once it has started every line is kept.

    Args:
        source: Full file content.
        ignored_markers: Case-insensitive markers of non-license comment lines.
            Defaults to DEFAULT_IGNORED_HEADER_MARKERS.

    Returns:
        The header text with blank lines preserved between paragraphs, or an
        empty string if the file does not start with a comment.
    """
    markers = [
        m.lower()
        for m in (
            DEFAULT_IGNORED_HEADER_MARKERS if ignored_markers is None else ignored_markers
        )
    ]
    parts: list[str] = []
    # Index of the first license line in parts
    start: Optional[int] = None
    block_close: Optional[str] = None

    def add(part: str) -> None:
        nonlocal start
        parts.append(part)
        if start is None and part and not any(m in part.lower() for m in markers):
            start = len(parts) - 1

    for index, raw_line in enumerate(source.splitlines()):
        line = raw_line.strip()

        if block_close is not None:
            closed = block_close in line
            if closed:
                line = line.split(block_close, 1)[0]
                block_close = None
            add(_strip_decoration(line))
            # A license block comment ends the header when it closes
            if closed and start is not None:
                break
            continue

        if not line:
            add("")
            continue

        # Shebangs and Luau mode directives such as "--!strict"
        if (index == 0 and line.startswith("#!")) or line.startswith("--!"):
            continue

        block = _block_close_for(line)
        if block is not None:
            opener, closer = block
            body = line[len(opener):]
            closed = closer in body
            if closed:
                body = body.split(closer, 1)[0]
            else:
                block_close = closer
            add(_strip_decoration(body))
            if closed and start is not None:
                break
            continue

        marker = _line_comment_marker(line)
        if marker is None:
            # First line of code ends the header
            break
        add(_strip_decoration(line[len(marker):]))

    if start is None:
        return ""
    return "\n".join(parts[start:]).strip()
