#!/usr/bin/env python3
"""
SOPS-SHELL REWRITER - Value Surgery
-----------------------------------
Applies an ordered patch list of (value span, new value) to a LineModel in a
single pass. Every character outside the patched spans is copied from the
original text unchanged.

Author: sops-shell Team
Date: 2026-10-18
"""

from typing import Iterable, List, Tuple

from sopsshell.core.models import LineSpan
from sopsshell.surgery.lines import LineModel

Patch = Tuple[LineSpan, str]


class Rewriter:

    def apply(self, model: LineModel, patches: Iterable[Patch]) -> str:
        """
        Returns the patched text.

        Raises:
            ValueError: if two patches overlap or a value contains a line break
        """
        ordered: List[Patch] = sorted(patches, key=lambda p: p[0])
        original = model.text
        if not ordered:
            return original

        for (prev, _), (span, _) in zip(ordered, ordered[1:]):
            if prev.overlaps(span) or prev == span:
                raise ValueError(f"Overlapping patches on line {span.line + 1}")

        parts: List[str] = []
        cursor = 0
        for span, new_value in ordered:
            if "\n" in new_value or "\r" in new_value:
                raise ValueError(f"Patch for line {span.line + 1} contains a line break")
            start, end = model.offset(span)
            parts.append(original[cursor:start])
            parts.append(new_value)
            cursor = end
        parts.append(original[cursor:])
        return "".join(parts)
