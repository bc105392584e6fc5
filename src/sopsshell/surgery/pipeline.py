#!/usr/bin/env python3
"""
SOPS-SHELL SYNC PIPELINE
------------------------
Coordinates scanning, command execution, comparison and rewriting for the
plaintext of one secrets file.

    text -> LineModel -> AnnotationScanner -> runner(command) per entry
         -> SyncResult per annotated entry -> Rewriter (apply mode only)

The runner is any callable `command -> stdout` that raises ExecutionError,
so the pipeline can be exercised without spawning processes.

Author: sops-shell Team
Date: 2026-10-18
"""

import logging
import re
from typing import Callable, Optional

from sopsshell.core.errors import ExecutionError
from sopsshell.core.models import Format, SecretEntry, SyncFile, SyncOutcome, SyncResult
from sopsshell.runner.executor import CommandExecutor
from sopsshell.surgery.adapters import FormatAdapter
from sopsshell.surgery.lines import LineModel
from sopsshell.surgery.rewriter import Rewriter
from sopsshell.surgery.scanner import AnnotationScanner

logger = logging.getLogger("sopsshell.pipeline")

CommandRunner = Callable[[str], str]

YAML_INLINE_COMMENT = re.compile(r"[ \t]#")


class SyncEngine:
    """
    Check (dry run) and sync (apply) over decrypted text.
    Commands run sequentially in file order.
    """

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandExecutor()
        self.scanner = AnnotationScanner()
        self.rewriter = Rewriter()

    def check(self, text: str, fmt: Format, path: Optional[str] = None) -> SyncFile:
        """Classifies every annotated entry; never produces new text."""
        return self._check(LineModel.load(text), text, fmt, path)

    def sync(self, text: str, fmt: Format, path: Optional[str] = None) -> SyncFile:
        """
        Runs a check, then rewrites every OUT_OF_SYNC value.
        `updated_text` stays None when nothing changed.
        """
        model = LineModel.load(text)
        sync_file = self._check(model, text, fmt, path)
        sync_file.applied = True

        adapter = FormatAdapter.for_format(fmt)
        patches = [
            (r.entry.value_span, adapter.patch_text(model[r.entry.value_span.line], r.entry.value_span, r.new_value))
            for r in sync_file.out_of_sync
        ]
        if patches:
            sync_file.updated_text = self.rewriter.apply(model, patches)
        return sync_file

    def _check(self, model: LineModel, text: str, fmt: Format, path: Optional[str]) -> SyncFile:
        adapter = FormatAdapter.for_format(fmt)
        entries = self.scanner.scan(model, fmt)
        sync_file = SyncFile(path=path, format=fmt, original_text=text, entries=entries)
        sync_file.results = [self._evaluate(entry, model, adapter) for entry in entries if entry.is_annotated]
        logger.debug(f"{path or '<text>'}: {len(sync_file.results)} annotated of {len(entries)} entries")
        return sync_file

    def _evaluate(self, entry: SecretEntry, model: LineModel, adapter: FormatAdapter) -> SyncResult:
        command = entry.annotation.command
        try:
            output = self.runner(command)
        except ExecutionError as e:
            logger.debug(f"{entry.key} (line {entry.line_no}): {e}")
            return SyncResult(entry, SyncOutcome.COMMAND_FAILED, error=e)

        if "\n" in output or "\r" in output:
            error = ExecutionError(command, "Command output spans multiple lines and cannot be stored as a single value")
            return SyncResult(entry, SyncOutcome.COMMAND_FAILED, error=error)

        if output == entry.value:
            return SyncResult(entry, SyncOutcome.IN_SYNC)

        reason = self._unstorable(entry, output, model, adapter)
        if reason:
            logger.debug(f"{entry.key} (line {entry.line_no}): {reason}")
            return SyncResult(entry, SyncOutcome.COMMAND_FAILED, error=ExecutionError(command, reason))
        return SyncResult(entry, SyncOutcome.OUT_OF_SYNC, new_value=output)

    @staticmethod
    def _unstorable(entry: SecretEntry, output: str, model: LineModel, adapter: FormatAdapter) -> Optional[str]:
        """
        Splices the output into the entry's line and reads it back. Returns a
        reason when the value would come back different (surrounding
        whitespace dropped by the format, a leading comment marker, ...).
        """
        span = entry.value_span
        patched = model.replace(span, adapter.patch_text(model[span.line], span, output))[span.line]
        matched = adapter.match_key_value(patched)
        if matched is None or matched[0] != entry.key or patched.content[matched[1].start:matched[1].end] != output:
            return f"Command output would not read back unchanged as a {adapter.format.value} value"
        if adapter.format is Format.YAML and YAML_INLINE_COMMENT.search(output):
            return "Command output contains ' #', which YAML reads as the start of a comment"
        return None
