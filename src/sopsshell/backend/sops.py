#!/usr/bin/env python3
"""
SOPS-SHELL BACKEND - SOPS Collaborator
--------------------------------------
Owns the decrypt / re-encrypt round trip through the `sops` CLI.

Re-encryption runs sops in edit mode with SOPS_EDITOR (and EDITOR) set to a
copy command: sops decrypts into its own temporary file, the "editor"
overwrites it with our rewritten plaintext, and sops encrypts the result
with the file's existing keys and creation rules.

Author: sops-shell Team
Date: 2026-10-18
"""

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Union

from sopsshell.core.config import DEFAULT_SOPS_BINARY, SOPS_TYPES
from sopsshell.core.errors import BackendError
from sopsshell.core.models import Format

logger = logging.getLogger("sopsshell.backend")

# sops exit status when an edit session leaves the file untouched
SOPS_FILE_NOT_MODIFIED = 200


class SopsBackend:
    """Decrypts and re-encrypts secrets files with the sops binary."""

    def __init__(self, binary: str = DEFAULT_SOPS_BINARY):
        self.binary = binary

    def ensure_available(self):
        if shutil.which(self.binary) is None:
            raise BackendError(
                f"SOPS command '{self.binary}' not found. Please install SOPS or ensure it's in PATH"
            )

    def _type_args(self, fmt: Format) -> List[str]:
        sops_type = SOPS_TYPES[fmt]
        return ["--input-type", sops_type, "--output-type", sops_type]

    def _run(self, args: List[str], **kwargs) -> subprocess.CompletedProcess:
        self.ensure_available()
        cmd = [self.binary] + args
        logger.debug(f"Invoking: {' '.join(shlex.quote(a) for a in cmd)}")
        try:
            return subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, **kwargs)
        except OSError as e:
            raise BackendError(f"Failed to execute sops command: {e}")

    def decrypt(self, path: Union[str, Path], fmt: Format) -> str:
        """Returns the decrypted plaintext of `path`."""
        proc = self._run(["--decrypt"] + self._type_args(fmt) + [str(path)])
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise BackendError(f"SOPS command failed: {stderr}")
        try:
            return proc.stdout.decode("utf-8")
        except UnicodeDecodeError:
            raise BackendError(f"Decrypted content of {path} is not valid UTF-8")

    def encrypt_in_place(self, path: Union[str, Path], fmt: Format, plaintext: str):
        """
        Replaces the content of the encrypted file with `plaintext`.
        The file on disk is only touched by sops itself, after a successful edit.
        """
        with tempfile.TemporaryDirectory(prefix="sops-shell-") as workdir:
            staged = Path(workdir) / f"plaintext{Path(path).suffix}"
            fd = os.open(staged, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(plaintext)

            editor = f"cp {shlex.quote(str(staged))}"
            env = dict(os.environ, SOPS_EDITOR=editor, EDITOR=editor)
            proc = self._run(self._type_args(fmt) + [str(path)], env=env)

        if proc.returncode == SOPS_FILE_NOT_MODIFIED:
            logger.info(f"{path}: sops reports no changes")
            return
        if proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace").strip()
            raise BackendError(f"SOPS command failed: {stderr}")
