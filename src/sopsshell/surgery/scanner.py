#!/usr/bin/env python3
"""
SOPS-SHELL SCANNER - Directive Binder
-------------------------------------
Walks a LineModel once, top to bottom, and emits every key/value line as a
SecretEntry. A `shell:` directive binds to the next non-blank line only if
that line is a key/value line; anything else in between (another comment,
a section header, free text) silently drops the directive.

Author: sops-shell Team
Date: 2026-10-18
"""

import logging
from typing import List, Optional

from sopsshell.core.models import CommandAnnotation, Format, SecretEntry
from sopsshell.surgery.adapters import FormatAdapter
from sopsshell.surgery.lines import Line, LineModel

logger = logging.getLogger("sopsshell.scanner")


class AnnotationScanner:
    """Produces the ordered list of SecretEntry objects for a file."""

    def scan(self, model: LineModel, fmt: Format) -> List[SecretEntry]:
        adapter = FormatAdapter.for_format(fmt)
        entries: List[SecretEntry] = []
        pending: Optional[CommandAnnotation] = None

        for line in model:
            # Blank lines keep a pending directive alive
            if line.is_blank:
                continue

            command = adapter.match_directive(line)
            if command is not None:
                if pending is not None:
                    logger.debug(f"Directive on line {pending.span.line + 1} superseded by line {line.index + 1}")
                pending = CommandAnnotation(command=command, span=line.full_span)
                continue

            matched = adapter.match_key_value(line)
            if matched is not None and matched[1].start == matched[1].end:
                # "key:" with nothing after it is either a placeholder or a parent mapping
                if adapter.opens_block(line, self._next_significant(model, line.index, adapter)):
                    matched = None
            if matched is not None:
                key, value_span = matched
                entries.append(SecretEntry(
                    key=key,
                    value=model.slice(value_span),
                    value_span=value_span,
                    annotation=pending,
                ))
            elif pending is not None:
                logger.debug(f"Directive on line {pending.span.line + 1} ignored: "
                             f"line {line.index + 1} is not a key/value line")
            pending = None

        if pending is not None:
            logger.debug(f"Directive on line {pending.span.line + 1} has no key below it")
        return entries

    @staticmethod
    def _next_significant(model: LineModel, index: int, adapter: FormatAdapter) -> Optional[Line]:
        for line in model.lines[index + 1:]:
            if not line.is_blank and not adapter.is_comment(line):
                return line
        return None
