#!/usr/bin/env python3
"""
SOPS-SHELL CORE MODELS
----------------------
Defines the fundamental data structures used across the sops-shell engine.
Entries and results never hold a parsed document tree, only positions
inside the original text.

Author: sops-shell Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Format(str, Enum):
    """The closed set of secrets-file dialects the scanner understands."""
    YAML = "yaml"
    ENV = "env"
    INI = "ini"


@dataclass(frozen=True, order=True)
class LineSpan:
    """
    A column range inside a single line of a LineModel.

    Columns are offsets into the line content (terminator excluded).
    A whole-line span runs from 0 to len(content).
    """
    line: int               # Zero-based line index in the LineModel
    start: int              # First column of the span
    end: int                # Column one past the last character

    def overlaps(self, other: "LineSpan") -> bool:
        if self.line != other.line:
            return False
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class CommandAnnotation:
    """A `shell:` directive bound to the key/value line below it."""
    command: str            # Raw command text, passed to the shell verbatim
    span: LineSpan          # Whole-line span of the directive comment


@dataclass(frozen=True)
class SecretEntry:
    """
    One key/value line discovered by the scanner.

    Entries are identified by their value span, not by key, so repeated
    keys in different sections stay independent.
    """
    key: str
    value: str              # Value exactly as written, quotes included
    value_span: LineSpan
    annotation: Optional[CommandAnnotation] = None

    @property
    def line_no(self) -> int:
        """One-based line number, for reports."""
        return self.value_span.line + 1

    @property
    def is_annotated(self) -> bool:
        return self.annotation is not None


class SyncOutcome(str, Enum):
    IN_SYNC = "IN_SYNC"
    OUT_OF_SYNC = "OUT_OF_SYNC"
    COMMAND_FAILED = "COMMAND_FAILED"


@dataclass(frozen=True)
class SyncResult:
    """Terminal state of a single annotated entry."""
    entry: SecretEntry
    outcome: SyncOutcome
    new_value: Optional[str] = None     # Set only for OUT_OF_SYNC
    error: Optional[Exception] = None   # Set only for COMMAND_FAILED


@dataclass
class SyncFile:
    """
    The record of one processed secrets file.

    Owned by a single engine invocation. `updated_text` is only populated
    in apply mode when at least one value actually changed.
    """
    path: Optional[str]
    format: Format
    original_text: str
    entries: List[SecretEntry] = field(default_factory=list)
    results: List[SyncResult] = field(default_factory=list)
    updated_text: Optional[str] = None
    applied: bool = False               # True when produced by sync (apply) mode

    @property
    def annotated(self) -> List[SecretEntry]:
        return [e for e in self.entries if e.is_annotated]

    @property
    def in_sync(self) -> List[SyncResult]:
        return [r for r in self.results if r.outcome == SyncOutcome.IN_SYNC]

    @property
    def out_of_sync(self) -> List[SyncResult]:
        return [r for r in self.results if r.outcome == SyncOutcome.OUT_OF_SYNC]

    @property
    def failed(self) -> List[SyncResult]:
        return [r for r in self.results if r.outcome == SyncOutcome.COMMAND_FAILED]

    @property
    def changed(self) -> bool:
        return self.updated_text is not None and self.updated_text != self.original_text
