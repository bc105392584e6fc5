"""
Global configuration and environment handling.

This module is responsible for:
- Defining tool constants and the directive syntax
- Mapping file names to secrets formats
- Loading runtime settings from the environment

Nothing in this file should depend on the filesystem or CLI arguments.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Final, Optional

from sopsshell.core.errors import ConfigError
from sopsshell.core.models import Format

# ---------------------------------------------------------------------------
# Tool versioning
# ---------------------------------------------------------------------------

TOOL_NAME: Final[str] = "sops-shell"
TOOL_VERSION: Final[str] = "0.1.0"

# ---------------------------------------------------------------------------
# Directive syntax
# ---------------------------------------------------------------------------

DIRECTIVE_TAG: Final[str] = "shell:"

# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

EXTENSION_FORMATS: Final[Dict[str, Format]] = {
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
    ".env": Format.ENV,
    ".ini": Format.INI,
}

# Input/output type names understood by `sops --input-type`
SOPS_TYPES: Final[Dict[Format, str]] = {
    Format.YAML: "yaml",
    Format.ENV: "dotenv",
    Format.INI: "ini",
}

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------

ENV_SOPS_BINARY: Final[str] = "SOPS_SHELL_SOPS_BINARY"
ENV_SHELL: Final[str] = "SOPS_SHELL_SHELL"
ENV_TIMEOUT: Final[str] = "SOPS_SHELL_TIMEOUT"

DEFAULT_SOPS_BINARY: Final[str] = "sops"
DEFAULT_SHELL: Final[str] = "/bin/sh"


@dataclass
class Settings:
    """Runtime knobs shared by the executor and the backend."""
    sops_binary: str = DEFAULT_SOPS_BINARY
    shell: str = DEFAULT_SHELL
    timeout: Optional[float] = None     # Seconds per command; None waits forever

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ConfigError: if SOPS_SHELL_TIMEOUT is not a positive number
        """
        env = os.environ if environ is None else environ
        return cls(
            sops_binary=env.get(ENV_SOPS_BINARY) or DEFAULT_SOPS_BINARY,
            shell=env.get(ENV_SHELL) or DEFAULT_SHELL,
            timeout=parse_timeout(env.get(ENV_TIMEOUT)),
        )


def parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"Invalid timeout '{raw}': expected a number of seconds")
    if value <= 0:
        raise ConfigError(f"Invalid timeout '{raw}': must be greater than zero")
    return value
