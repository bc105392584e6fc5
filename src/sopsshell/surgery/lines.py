#!/usr/bin/env python3
"""
SOPS-SHELL LINE MODEL
---------------------
Holds a secrets file as an ordered list of lines, each remembering its own
terminator ('\\n', '\\r\\n' or nothing on the last line). Joining the lines
back always reproduces the input exactly; nothing here trims, normalizes
or re-encodes text.

Author: sops-shell Team
Date: 2026-10-18
"""

from dataclasses import dataclass
from typing import List, Tuple

from sopsshell.core.models import LineSpan


@dataclass(frozen=True)
class Line:
    index: int              # Zero-based position in the file
    offset: int             # Character offset of the line start in the full text
    content: str            # Line text without its terminator
    terminator: str = ""    # '\n', '\r\n' or '' for an unterminated last line

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()

    @property
    def full_span(self) -> LineSpan:
        return LineSpan(self.index, 0, len(self.content))


class LineModel:
    """
    Immutable view of a text split into lines.
    All other components address text through LineSpans on this model.
    """

    def __init__(self, lines: Tuple[Line, ...]):
        self.lines = lines

    @classmethod
    def load(cls, text: str) -> "LineModel":
        """Splits text on '\\n', keeping each line's own terminator."""
        lines: List[Line] = []
        offset = 0
        pieces = text.split("\n")
        for i, piece in enumerate(pieces):
            is_last = i == len(pieces) - 1
            if is_last and not piece:
                break
            terminator = "" if is_last else "\n"
            if terminator and piece.endswith("\r"):
                piece, terminator = piece[:-1], "\r\n"
            lines.append(Line(len(lines), offset, piece, terminator))
            offset += len(piece) + len(terminator)
        return cls(tuple(lines))

    @property
    def text(self) -> str:
        return "".join(line.content + line.terminator for line in self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def __getitem__(self, index: int) -> Line:
        return self.lines[index]

    def _check(self, span: LineSpan) -> Line:
        if not 0 <= span.line < len(self.lines):
            raise IndexError(f"Span line {span.line} outside model of {len(self.lines)} lines")
        line = self.lines[span.line]
        if not 0 <= span.start <= span.end <= len(line.content):
            raise IndexError(f"Span columns {span.start}:{span.end} outside line {span.line}")
        return line

    def offset(self, span: LineSpan) -> Tuple[int, int]:
        """Absolute (start, end) character offsets of a span in `text`."""
        line = self._check(span)
        return line.offset + span.start, line.offset + span.end

    def slice(self, span: LineSpan) -> str:
        line = self._check(span)
        return line.content[span.start:span.end]

    def replace(self, span: LineSpan, new_text: str) -> "LineModel":
        """
        Returns a new model with only the span's characters substituted.
        Offsets of the following lines shift; their content does not change.
        """
        line = self._check(span)
        if "\n" in new_text or "\r" in new_text:
            raise ValueError("Replacement text must not contain line breaks")

        content = line.content[:span.start] + new_text + line.content[span.end:]
        delta = len(content) - len(line.content)
        lines = list(self.lines)
        lines[span.line] = Line(line.index, line.offset, content, line.terminator)
        for i in range(span.line + 1, len(lines)):
            old = lines[i]
            lines[i] = Line(old.index, old.offset + delta, old.content, old.terminator)
        return LineModel(tuple(lines))
