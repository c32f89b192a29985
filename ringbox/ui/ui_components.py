#!/usr/bin/env python3

from typing import Any, Dict, List, Tuple
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ringbox.options import ModuleSpec


class StatusIndicator:
    STATUS_SYMBOLS = {
        "success": "✓",
        "error": "✗",
        "warning": "⚠",
        "info": "ℹ",
        "running": "▶"
    }

    STATUS_COLORS = {
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "cyan",
        "running": "blue"
    }

    @staticmethod
    def get_indicator(status: str) -> Text:
        symbol = StatusIndicator.STATUS_SYMBOLS.get(status, "?")
        color = StatusIndicator.STATUS_COLORS.get(status, "white")
        return Text(symbol, style=color)

    @staticmethod
    def format_status_message(status: str, message: str) -> Text:
        indicator = StatusIndicator.get_indicator(status)
        color = StatusIndicator.STATUS_COLORS.get(status, "white")
        text = Text()
        text.append(indicator)
        text.append(" ")
        text.append(message, style=color)
        return text


class OutputFormatter:
    def __init__(self, console: Console):
        self.console = console

    def print_status(self, status: str, message: str):
        self.console.print(StatusIndicator.format_status_message(status, message))

    def print_module_header(self, module_name: str, description: str = ""):
        header = f"[bold cyan]{module_name}[/bold cyan]"
        if description:
            header += f" [dim]{description}[/dim]"
        self.console.print(f"\n{header}\n")

    def print_module_list(self, modules: List[ModuleSpec], title: str = "Available Modules"):
        table = Table(title=f"[bold]{title}[/bold]", show_header=True, header_style="bold cyan")
        table.add_column("Module", style="cyan", no_wrap=True)
        table.add_column("Category", style="magenta", justify="center")
        table.add_column("Description", style="green")

        for spec in modules:
            table.add_row(spec.name, spec.category, spec.help)

        self.console.print(table)

    def print_options_table(self, spec: ModuleSpec, overrides: Dict[str, Any]):
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Option", style="cyan", no_wrap=True)
        table.add_column("Default", style="yellow")
        table.add_column("Shown when", style="magenta")
        table.add_column("Description", style="green")

        for option in spec.options:
            if option.name in overrides:
                default = f"{overrides[option.name]} [dim](global)[/dim]"
            elif option.has_default:
                default = str(option.default)
            else:
                default = "N/A"
            condition = ""
            if option.when is not None:
                condition = f"{option.when.field} in {', '.join(option.when.values)}"
            table.add_row(option.name, default, condition, option.help)

        self.console.print(table)

    def print_key_values(self, title: str, values: Dict[str, Any]):
        table = Table(title=f"[bold]{title}[/bold]", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Value", style="magenta")

        for key, value in values.items():
            table.add_row(key, str(value))

        self.console.print(table)

    def print_suggestion_box(self, title: str, suggestions: List[Tuple[str, float]]):
        if not suggestions:
            return

        content = "[bold]Did you mean?[/bold]\n"
        for i, (suggestion, score) in enumerate(suggestions[:5], 1):
            confidence = int(score * 100)
            content += f"{i}. [cyan]{suggestion}[/cyan] ({confidence}%)\n"

        self.console.print(Panel(content.strip(), title=title, style="yellow"))

