#!/usr/bin/env python3
"""
SOPS-SHELL CLI
--------------
Primary interface. Two verbs over one or more encrypted secrets files:

  check  - dry run: report which annotated secrets are out of sync
  sync   - rewrite out-of-sync values and re-encrypt the file

Exit codes: 0 clean, 1 failures (or out-of-sync secrets in check mode),
2 usage errors, 130 when interrupted.

Author: sops-shell Team
Date: 2026-10-18
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from sopsshell.cli.formatter import SyncFormatter
from sopsshell.core.config import TOOL_NAME, TOOL_VERSION, Settings, parse_timeout
from sopsshell.core.engine import SopsShellEngine
from sopsshell.core.errors import ConfigError
from sopsshell.core.models import Format

# Global console for consistent styling across the application
console = Console()


class SopsShellCLI:
    """
    CLI wrapper that translates user commands into Engine actions.
    """

    def __init__(self, console: Console = console, engine_factory=SopsShellEngine):
        self.console = console
        self.formatter = SyncFormatter(console)
        self.engine_factory = engine_factory
        self.parser = argparse.ArgumentParser(
            prog=TOOL_NAME,
            description="Sync secrets from shell commands to SOPS encrypted files",
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("--version", action="version", version=f"{TOOL_NAME} v{TOOL_VERSION}")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        for name, help_text in (
            ("check", "Report secrets whose value differs from their command output (dry run)"),
            ("sync", "Update out-of-sync secrets and re-encrypt the files"),
        ):
            sub = subparsers.add_parser(name, help=help_text)
            sub.add_argument("files", nargs="+", help=f"SOPS encrypted files to {name}")
            sub.add_argument("--format", choices=[f.value for f in Format],
                             help="Override format detection from the file extension")
            sub.add_argument("--timeout", help="Per-command timeout in seconds (default: none)")
            sub.add_argument("--sops-binary", help="Path to the sops executable")

    def _build_settings(self, args: argparse.Namespace) -> Settings:
        settings = Settings.from_env()
        if args.timeout is not None:
            settings.timeout = parse_timeout(args.timeout)
        if args.sops_binary:
            settings.sops_binary = args.sops_binary
        return settings

    def _run_engine(self, args: argparse.Namespace, apply: bool) -> int:
        """Main processing loop orchestration."""
        missing = [f for f in args.files if not Path(f).is_file()]
        if missing:
            for f in missing:
                self.console.print(f"[bold red]Error:[/bold red] File not found: {f}")
            return 1

        try:
            settings = self._build_settings(args)
        except ConfigError as e:
            self.console.print(f"[bold red]Configuration error:[/bold red] {e}")
            return 1

        engine = self.engine_factory(settings=settings)
        reports = engine.process_files(
            args.files,
            apply=apply,
            format_override=args.format,
            progress_callback=lambda report: self.formatter.render_file(report, apply),
        )

        summary = engine.generate_summary(reports)
        self.console.print("\n" + "=" * 60)
        self.formatter.render_summary(summary, apply, args.files)

        if summary["file_errors"] or summary["command_failures"]:
            return 1
        if not apply and summary["out_of_sync"]:
            return 1
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point."""
        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        if args.command == "check":
            self.formatter.print_header("Secrets Check (dry run)", TOOL_VERSION)
            return self._run_engine(args, apply=False)
        if args.command == "sync":
            self.formatter.print_header("Secrets Sync", TOOL_VERSION)
            return self._run_engine(args, apply=True)

        self.parser.print_help()
        return 2


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(SopsShellCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(130)


if __name__ == "__main__":
    main()
