# src/sopsshell/cli/formatter.py
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sopsshell.core.config import TOOL_NAME
from sopsshell.core.models import SyncFile, SyncOutcome

STATUS_STYLES = {
    SyncOutcome.IN_SYNC: ("green", "IN SYNC"),
    SyncOutcome.OUT_OF_SYNC: ("yellow", "OUT OF SYNC"),
    SyncOutcome.COMMAND_FAILED: ("red", "COMMAND FAILED"),
}


class SyncFormatter:
    """
    SyncFormatter: renders per-file results and the final summary.
    Secret values never reach the terminal; only keys, commands and statuses.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_header(self, subtitle: str, version: str):
        self.console.print(Panel.fit(
            f"[bold cyan]{TOOL_NAME} v{version}[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def render_file(self, report: Dict[str, Any], apply: bool):
        """Prints one file block as soon as its report is available."""
        path = escape(report["file_path"])
        self.console.print(f"\n[bold cyan]Processing {path}...[/bold cyan]")

        sync_file: Optional[SyncFile] = report.get("sync_file")
        if sync_file is None:
            self.console.print(f"  [bold red]Error:[/bold red] {escape(report.get('error') or 'unknown error')}")
            return

        if not sync_file.results:
            self.console.print("  [dim]No secrets with 'shell:' commands found[/dim]")
            return

        self.console.print(f"  Found {len(sync_file.results)} secret(s) with commands")
        self.console.print(self._results_table(sync_file))

        for result in sync_file.failed:
            self.console.print(
                f"  [red]{escape(result.entry.key)} (line {result.entry.line_no}):[/red] {escape(str(result.error))}"
            )

        pending = len(sync_file.out_of_sync)
        if report.get("error"):
            self.console.print(f"  [bold red]Not written:[/bold red] {escape(report['error'])}")
        elif report.get("written"):
            self.console.print(f"  [green]Updated {pending} secret(s) in {path}[/green]")
        elif pending and not apply:
            self.console.print(f"  [yellow]Would update {pending} secret(s) (dry run)[/yellow]")
        elif not sync_file.failed:
            self.console.print("  [green]All secrets in sync[/green]")

    def _results_table(self, sync_file: SyncFile) -> Table:
        table = Table(show_header=True, header_style="bold magenta", box=None, padding=(0, 2))
        table.add_column("Key", style="cyan")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Command")
        table.add_column("Status")

        for result in sync_file.results:
            color, label = STATUS_STYLES[result.outcome]
            table.add_row(
                escape(result.entry.key),
                str(result.entry.line_no),
                escape(result.entry.annotation.command),
                f"[{color}]{label}[/{color}]",
            )
        return table

    def render_summary(self, summary: Dict[str, Any], apply: bool, files: List[str]):
        lines = ["[bold white]Summary[/bold white]", "═" * 40]
        if apply:
            lines.append(f"Files processed:     {summary['total_files']}")
            lines.append(f"Secrets checked:     {summary['secrets_checked']}")
            lines.append(f"Secrets updated:     [green]{summary['updated']}[/green]")
        else:
            lines.append(f"Files checked:       {summary['total_files']}")
            lines.append(f"Secrets checked:     {summary['secrets_checked']}")
            lines.append(f"Secrets out of sync: [yellow]{summary['out_of_sync']}[/yellow]")
        lines.append(f"Command failures:    [red]{summary['command_failures']}[/red]")
        lines.append(f"File errors:         [red]{summary['file_errors']}[/red]")
        self.console.print(Panel("\n".join(lines), border_style="dim", expand=False))

        if not apply and summary["out_of_sync"]:
            targets = " ".join(escape(f) for f in files)
            self.console.print(f"\nRun '[bold]{TOOL_NAME} sync {targets}[/bold]' to update")
