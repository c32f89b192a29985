#!/usr/bin/env python3
"""
Ringbox Output Formatting System
Rendering of module outcomes and live findings
"""

import json
from typing import Any, Dict, Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ringbox.events import Finding


class OutcomeRenderer:
    """Prints run outcomes and progress findings for the shell"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_finding(self, finding: Finding):
        if finding.valid:
            self.console.print(f"[bold green]{escape(finding.label())} ✓ valid[/bold green]")
        else:
            self.console.print(f"[cyan]{escape(finding.label())}[/cyan]")

    def print_running(self, module: str):
        self.console.print(f"\n[bold blue]▶ Running the module {module} ...[/bold blue]\n")

    def print_finished(self, elapsed: float):
        self.console.print(f"\n[bold blue]Module run finished[/bold blue] [dim]({elapsed:.2f}s)[/dim]")

    def print_result(self, result: Any):
        self.console.print("\n[bold magenta]Result[/bold magenta]")
        self.print_json(result)
        self.console.print()

    def print_empty(self):
        self.console.print("\n[bold magenta]Result[/bold magenta]")
        self.console.print("[yellow]Empty[/yellow]\n")

    def print_json(self, data: Any):
        self.console.print_json(json.dumps(data, default=str))

    def print_error_panel(self, title: str, message: str, details: Optional[Dict] = None):
        """
        Print error in panel format

        Args:
            title: Error title
            message: Error message
            details: Optional error details
        """
        content = f"[bold red]{message}[/bold red]"

        if details:
            content += "\n\n[dim]Details:[/dim]"
            for key, value in details.items():
                content += f"\n  {key}: {value}"

        self.console.print(Panel(content, title=f"[red]{title}[/red]", expand=False))
