#!/usr/bin/env python3
"""
SOPS-SHELL VALIDATOR - The Judge
--------------------------------
The final safety gate before a rewritten plaintext is handed back to the
encryption backend. A command whose output is not a legal scalar for the
target dialect (e.g. a YAML value starting with '[' or containing ': ')
would otherwise be encrypted into a file the backend can no longer read.
Each new YAML value must also load back as the scalar that was written,
and a dotenv rewrite must keep every `KEY=value` assignment line.

The gate only blames the rewrite: if the original text already fails a
check, that check is skipped.

Author: sops-shell Team
Date: 2026-10-18
"""

import configparser
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from ruamel.yaml import YAML, YAMLError

from sopsshell.core.errors import RewriteRejected
from sopsshell.core.models import Format
from sopsshell.surgery.adapters import FormatAdapter
from sopsshell.surgery.lines import LineModel

logger = logging.getLogger("sopsshell.validator")

YAML_NULLS = ("", "~", "null", "Null", "NULL")


class RewriteValidator:
    """Compares original and rewritten plaintext for structural damage."""

    def __init__(self):
        self.yaml = YAML(typ='safe', pure=True)
        self.checks: Dict[Format, Callable[[str], int]] = {
            Format.YAML: self._yaml_documents,
            Format.ENV: self._env_assignments,
            Format.INI: self._ini_sections,
        }

    def validate(self, original: str, rewritten: str, fmt: Format, values: Sequence[str] = ()) -> Tuple[bool, str]:
        """
        Returns (ok, reason). Reason is empty when ok.
        `values` are the new values written into the rewrite.
        """
        if len(LineModel.load(original)) != len(LineModel.load(rewritten)):
            return False, "Rewrite changed the number of lines"

        if fmt is Format.YAML:
            for value in values:
                reason = self._yaml_value_mismatch(value)
                if reason:
                    return False, reason

        check = self.checks[fmt]
        try:
            before = check(original)
        except (ValueError, configparser.Error) as e:
            logger.warning(f"Original {fmt.value} content does not parse, skipping structural check: {e}")
            return True, ""

        try:
            after = check(rewritten)
        except (ValueError, configparser.Error) as e:
            return False, f"Rewritten {fmt.value} content no longer parses: {e}"

        if before != after:
            return False, f"Rewrite changed the {fmt.value} document structure ({before} -> {after})"
        return True, ""

    def ensure_valid(self, original: str, rewritten: str, fmt: Format, values: Sequence[str] = ()):
        """
        Raises:
            RewriteRejected: when `validate` fails
        """
        ok, reason = self.validate(original, rewritten, fmt, values)
        if not ok:
            raise RewriteRejected(reason)

    def _yaml_value_mismatch(self, value: str) -> Optional[str]:
        """A written YAML value must load back as a scalar equal to what was written."""
        try:
            loaded = self.yaml.load(f"value: {value}")
        except YAMLError:
            return "A new YAML value is not a valid plain scalar"

        scalar = loaded.get("value") if isinstance(loaded, dict) else None
        if isinstance(scalar, (dict, list)):
            return "A new YAML value loads as a collection instead of a scalar"
        if scalar is None and value not in YAML_NULLS:
            return "A new YAML value loads as null"
        # Quoted output is stored as the quoted scalar on purpose
        if isinstance(scalar, str) and scalar != value and value[:1] not in "'\"":
            return "A new YAML value does not load back as the same string"
        return None

    def _yaml_documents(self, text: str) -> int:
        try:
            return len(list(self.yaml.load_all(text)))
        except YAMLError as e:
            raise ValueError(str(e).splitlines()[0] if str(e) else "invalid YAML")

    def _env_assignments(self, text: str) -> int:
        adapter = FormatAdapter.for_format(Format.ENV)
        return sum(1 for line in LineModel.load(text) if adapter.match_key_value(line) is not None)

    def _ini_sections(self, text: str) -> int:
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.read_string(text)
        return sum(len(parser[s]) for s in parser.sections()) + len(parser.sections())
