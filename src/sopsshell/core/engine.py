#!/usr/bin/env python3
"""
SOPS-SHELL ENGINE - The Orchestrator
------------------------------------
Manages the lifecycle of encrypted secrets files through the sync phases:

  1. Format detection (fails fast on unsupported files)
  2. Decryption through the backend
  3. Check / sync of annotated values (SyncEngine)
  4. Safety gate on the rewritten plaintext
  5. Re-encryption, only when at least one value changed

A failure in one file is recorded in its report and never stops the others.

Author: sops-shell Team
Date: 2026-10-18
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from sopsshell.backend.sops import SopsBackend
from sopsshell.core.config import Settings
from sopsshell.core.errors import BackendError, RewriteRejected, UnsupportedFormatError
from sopsshell.core.models import Format, SyncFile
from sopsshell.runner.executor import CommandExecutor
from sopsshell.surgery.adapters import detect_format
from sopsshell.surgery.pipeline import CommandRunner, SyncEngine
from sopsshell.validator.validator import RewriteValidator

logger = logging.getLogger("sopsshell.engine")

# File-level statuses that mean the file could not be processed at all
FILE_ERROR_STATUSES = ("UNSUPPORTED_FORMAT", "BACKEND_ERROR", "REWRITE_REJECTED")


class SopsShellEngine:
    """
    Principal orchestrator for encrypted secrets files.
    The backend and the command runner are injectable so the whole flow
    can run against fakes.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 backend: Optional[SopsBackend] = None,
                 runner: Optional[CommandRunner] = None,
                 validator: Optional[RewriteValidator] = None):
        self.settings = settings or Settings()
        self.backend = backend or SopsBackend(self.settings.sops_binary)
        self.pipeline = SyncEngine(
            runner or CommandExecutor(shell=self.settings.shell, timeout=self.settings.timeout)
        )
        self.validator = validator or RewriteValidator()

    def process_file(self, path: Union[str, Path], apply: bool = False,
                     format_override: Union[Format, str, None] = None) -> Dict[str, Any]:
        """
        Performs a full check (apply=False) or sync (apply=True) of one file.
        """
        file_path = str(path)

        try:
            fmt = detect_format(path, format_override)
        except UnsupportedFormatError as e:
            logger.error(str(e))
            return self._file_error(file_path, "UNSUPPORTED_FORMAT", str(e))

        try:
            plaintext = self.backend.decrypt(path, fmt)
        except BackendError as e:
            logger.error(f"Failed to decrypt {file_path}: {e}")
            return self._file_error(file_path, "BACKEND_ERROR", f"Failed to decrypt: {e}", fmt)

        if apply:
            sync_file = self.pipeline.sync(plaintext, fmt, path=file_path)
        else:
            sync_file = self.pipeline.check(plaintext, fmt, path=file_path)

        result = {
            "file_path": file_path,
            "format": fmt.value,
            "sync_file": sync_file,
            "status": self._derive_status(sync_file),
            "written": False,
            "error": None,
            "timestamp": time.time(),
        }

        # Untouched files are never re-encrypted
        if not (apply and sync_file.changed):
            return result

        try:
            new_values = [r.new_value for r in sync_file.out_of_sync]
            self.validator.ensure_valid(sync_file.original_text, sync_file.updated_text, fmt, new_values)
        except RewriteRejected as e:
            logger.error(f"Refusing to write {file_path}: {e}")
            result.update(status="REWRITE_REJECTED", error=str(e))
            return result

        try:
            self.backend.encrypt_in_place(path, fmt, sync_file.updated_text)
            result["written"] = True
            result["status"] = "UPDATED"
        except BackendError as e:
            logger.error(f"Failed to re-encrypt {file_path}: {e}")
            result.update(status="BACKEND_ERROR", error=f"Failed to re-encrypt: {e}")

        return result

    def process_files(self, paths: Sequence[Union[str, Path]], apply: bool = False,
                      format_override: Union[Format, str, None] = None,
                      progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None
                      ) -> List[Dict[str, Any]]:
        """Processes files in order; one report per file."""
        reports = []
        for path in paths:
            report = self.process_file(path, apply=apply, format_override=format_override)
            reports.append(report)
            if progress_callback:
                progress_callback(report)
        return reports

    def check_files(self, paths: Sequence[Union[str, Path]], **kwargs) -> List[Dict[str, Any]]:
        return self.process_files(paths, apply=False, **kwargs)

    def sync_files(self, paths: Sequence[Union[str, Path]], **kwargs) -> List[Dict[str, Any]]:
        return self.process_files(paths, apply=True, **kwargs)

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Aggregated counters across all processed files."""
        sync_files = [r["sync_file"] for r in reports if r.get("sync_file") is not None]
        return {
            "total_files": len(reports),
            "secrets_checked": sum(len(f.results) for f in sync_files),
            "in_sync": sum(len(f.in_sync) for f in sync_files),
            "out_of_sync": sum(len(f.out_of_sync) for f in sync_files),
            "updated": sum(len(r["sync_file"].out_of_sync) for r in reports if r.get("written")),
            "command_failures": sum(len(f.failed) for f in sync_files),
            "file_errors": sum(1 for r in reports if r.get("status") in FILE_ERROR_STATUSES),
        }

    def _derive_status(self, sync_file: SyncFile) -> str:
        if not sync_file.results: return "NO_COMMANDS"
        if sync_file.out_of_sync: return "OUT_OF_SYNC"
        if sync_file.failed: return "COMMAND_FAILED"
        return "IN_SYNC"

    def _file_error(self, path: str, status: str, error: str,
                    fmt: Optional[Format] = None) -> Dict[str, Any]:
        return {
            "file_path": path, "format": fmt.value if fmt else None,
            "sync_file": None, "status": status, "error": error,
            "written": False, "timestamp": time.time(),
        }
