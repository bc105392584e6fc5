#!/usr/bin/env python3
"""
SOPS-SHELL FORMAT ADAPTERS
--------------------------
Line recognizers for the three supported dialects. Each adapter answers two
questions about a single line and nothing more:

  * is this a `shell:` directive comment, and which command does it name?
  * is this a key/value line, and where exactly is its value token?

Dialect differences live in the pattern tables below; the dispatch code is
shared so the scanner never branches on the format itself.

Author: sops-shell Team
Date: 2026-10-18
"""

import re
from pathlib import Path
from typing import Dict, Optional, Pattern, Tuple, Union

from sopsshell.core.config import DIRECTIVE_TAG, EXTENSION_FORMATS
from sopsshell.core.errors import UnsupportedFormatError
from sopsshell.core.models import Format, LineSpan
from sopsshell.surgery.lines import Line

# Comment markers accepted in front of the directive tag
COMMENT_MARKERS: Dict[Format, str] = {
    Format.YAML: "#",
    Format.ENV: "#",
    Format.INI: "#;",
}

# Group 'key' is the key as written. The match ends where the value may begin.
KEY_PATTERNS: Dict[Format, Pattern] = {
    # "  - name: value" / "name: value" / "'quoted key': value"
    Format.YAML: re.compile(
        r"""^[ \t]*(?:-[ \t]+)?(?P<key>"[^"]*"|'[^']*'|[^\s#:\-\[\]{}][^:]*?)[ \t]*:(?=[ \t]|$)"""
    ),
    # "KEY=value" / "export KEY=value"
    Format.ENV: re.compile(r"^[ \t]*(?:export[ \t]+)?(?P<key>[A-Za-z_][A-Za-z0-9_.\-]*)="),
    # "key = value" / "key=value"
    Format.INI: re.compile(r"^[ \t]*(?P<key>[^\s=;#\[][^=]*?)[ \t]*="),
}

BLOCK_SCALAR_MARKERS = ("|", ">")


def _directive_pattern(markers: str) -> Pattern:
    tag = re.escape(DIRECTIVE_TAG)
    return re.compile(rf"^[ \t]*[{re.escape(markers)}][ \t]*{tag}(?P<command>.*)$")


class FormatAdapter:
    """
    Recognizes directives and key/value lines for one Format.
    Instances are stateless; use `for_format` to get the shared one.
    """

    def __init__(self, fmt: Format):
        self.format = fmt
        self.directive_pattern = _directive_pattern(COMMENT_MARKERS[fmt])
        self.key_pattern = KEY_PATTERNS[fmt]

    def __repr__(self) -> str:
        return f"FormatAdapter({self.format.value})"

    @classmethod
    def for_format(cls, fmt: Format) -> "FormatAdapter":
        return _ADAPTERS[fmt]

    def is_comment(self, line: Line) -> bool:
        stripped = line.content.lstrip()
        return bool(stripped) and stripped[0] in COMMENT_MARKERS[self.format]

    def match_directive(self, line: Line) -> Optional[str]:
        """Returns the trimmed command of a `shell:` comment, or None."""
        match = self.directive_pattern.match(line.content)
        if not match:
            return None
        command = match.group("command").strip()
        return command or None

    def match_key_value(self, line: Line) -> Optional[Tuple[str, LineSpan]]:
        """Returns (key, value span) when the line is a key/value line."""
        match = self.key_pattern.match(line.content)
        if not match:
            return None

        key = match.group("key")
        content = line.content
        start = match.end()

        if self.format is Format.ENV:
            # Verbatim to end of line
            return key, LineSpan(line.index, start, len(content))

        # YAML and INI: skip separator whitespace, trim trailing whitespace
        while start < len(content) and content[start] in " \t":
            start += 1
        end = len(content.rstrip(" \t"))
        end = max(end, start)

        if self.format is Format.YAML:
            value = content[start:end]
            # Block scalars and "key: # note" carry no scalar value
            if value.startswith(BLOCK_SCALAR_MARKERS) or value.startswith("#"):
                return None
            key = key.strip("'\"") if key[:1] in "'\"" else key

        return key, LineSpan(line.index, start, end)

    def opens_block(self, line: Line, following: Optional[Line]) -> bool:
        """
        True when an empty YAML value on `line` is the parent of the block
        that starts on `following` (the next significant line).
        """
        if self.format is not Format.YAML or following is None:
            return False
        indent = _indent(line.content)
        child = following.content[_indent(following.content):]
        return _indent(following.content) > indent or child == "-" or child.startswith(("- ", "-\t"))

    def patch_text(self, line: Line, span: LineSpan, value: str) -> str:
        """Text to splice into `span` so that the line reads back as `value`."""
        if self.format is Format.YAML and span.start == span.end and line.content[span.start - 1:span.start] == ":":
            # "key:" placeholder needs its separator space
            return " " + value
        return value


def _indent(text: str) -> int:
    return len(text) - len(text.lstrip(" \t"))


_ADAPTERS: Dict[Format, FormatAdapter] = {fmt: FormatAdapter(fmt) for fmt in Format}


def detect_format(path: Union[str, Path, None],
                  override: Union[Format, str, None] = None) -> Format:
    """
    Resolves the Format of a secrets file.

    An explicit override wins; otherwise the file suffix decides. Dotenv
    files are also recognized by name ('.env', '.env.production').

    Raises:
        UnsupportedFormatError: before any scanning, if nothing matches
    """
    if override is not None:
        if isinstance(override, Format):
            return override
        try:
            return Format(str(override).lower())
        except ValueError:
            raise UnsupportedFormatError(str(override))

    if path is None:
        raise UnsupportedFormatError("<no path and no format override>")

    target = Path(path)
    fmt = EXTENSION_FORMATS.get(target.suffix.lower())
    if fmt is not None:
        return fmt
    if target.name == ".env" or target.name.startswith(".env."):
        return Format.ENV
    raise UnsupportedFormatError(str(path))
