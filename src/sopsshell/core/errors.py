#!/usr/bin/env python3
"""
SOPS-SHELL ERRORS
-----------------
Exception hierarchy shared by every sops-shell component.

Per-entry failures (ExecutionError) are collected into results by the
sync pipeline. Everything else is fatal for the file being processed
and is reported by the engine without stopping the remaining files.

Author: sops-shell Team
Date: 2026-10-18
"""

from typing import Optional


class SopsShellError(RuntimeError):
    """Base class for all sops-shell failures."""


class ConfigError(SopsShellError):
    """Invalid environment or command-line configuration."""


class UnsupportedFormatError(SopsShellError):
    """The file is not one of the supported secrets dialects."""

    def __init__(self, target: str):
        super().__init__(f"Unsupported secrets format: {target}")
        self.target = target


class ExecutionError(SopsShellError):
    """A directive command could not produce a value."""

    def __init__(self, command: str, reason: str,
                 exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(reason)
        self.command = command
        self.reason = reason
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.reason}: {self.stderr}"
        return self.reason


class BackendError(SopsShellError):
    """The encryption backend failed to decrypt or re-encrypt a file."""


class RewriteRejected(SopsShellError):
    """The rewritten plaintext failed the post-rewrite safety gate."""
