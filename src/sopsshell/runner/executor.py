#!/usr/bin/env python3
"""
SOPS-SHELL EXECUTOR
-------------------
Runs one directive command through the shell and captures its output.
The command text is handed to `<shell> -c` exactly as written; quoting is
the directive author's responsibility.

Author: sops-shell Team
Date: 2026-10-18
"""

import logging
import subprocess
from typing import Optional

from sopsshell.core.config import DEFAULT_SHELL
from sopsshell.core.errors import ExecutionError

logger = logging.getLogger("sopsshell.executor")


class CommandExecutor:
    """
    Callable command runner: `executor(command) -> stdout`.

    stdin is inherited so password managers can prompt. stdout loses exactly
    one trailing newline; stderr is kept only for diagnostics.
    """

    def __init__(self, shell: str = DEFAULT_SHELL, timeout: Optional[float] = None):
        self.shell = shell
        self.timeout = timeout

    def __call__(self, command: str) -> str:
        return self.run(command)

    def run(self, command: str) -> str:
        logger.debug(f"Running: {command}")
        try:
            proc = subprocess.run(
                [self.shell, "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise ExecutionError(command, f"Command timed out after {self.timeout:g}s")
        except OSError as e:
            raise ExecutionError(command, f"Failed to execute command: {e}")

        stderr = proc.stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            logger.debug(f"Command exited with status {proc.returncode}")
            raise ExecutionError(
                command,
                f"Command failed with exit status {proc.returncode}",
                exit_code=proc.returncode,
                stderr=stderr,
            )

        try:
            output = proc.stdout.decode("utf-8")
        except UnicodeDecodeError:
            raise ExecutionError(command, "Command output is not valid UTF-8", exit_code=0, stderr=stderr)

        if output.endswith("\n"):
            output = output[:-1]
        return output
