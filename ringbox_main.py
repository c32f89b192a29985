#!/usr/bin/env python3
"""
Ringbox - interactive console for pluggable security modules
Main entry point using Typer
"""

import asyncio
from typing import Any, Dict

import typer
from rich.console import Console

from ringbox.cli.interactive_cli import run_interactive_cli
from ringbox.config import config
from ringbox.driver import ExecutionDriver
from ringbox.events import channel
from ringbox.exceptions import RingboxException, UserCancelledError
from ringbox.logger import logger
from ringbox.module_registry import registry
from ringbox.options import ModuleSpec
from ringbox.prompting import preset_answers
from ringbox.ui.output import OutcomeRenderer
from ringbox.ui.ui_components import OutputFormatter
from ringbox.version import __status__, __version__

console = Console()
log = logger.get_logger("main")

app = typer.Typer(
    name="ringbox",
    help="Ringbox - interactive console for security modules",
    add_completion=False
)


def show_version():
    """Show version information"""
    console.print(f"[bold cyan]Ringbox[/bold cyan] v{__version__} ({__status__})")


@app.command("version", help="Show version information")
def version():
    show_version()


@app.command("list-modules", help="List all available modules and exit")
def list_modules():
    OutputFormatter(console).print_module_list(registry.modules)


@app.command("interactive", help="Start the interactive shell")
def interactive_cmd():
    run_interactive_cli()


@app.command("i", help="Start the interactive shell (shorthand)")
def interactive_shortcut():
    run_interactive_cli()


@app.callback(invoke_without_command=True, help="Ringbox - interactive console for security modules")
def callback(ctx: typer.Context):
    """Start the shell when no command is provided"""
    if ctx.invoked_subcommand is None:
        run_interactive_cli()


def execute_module(spec: ModuleSpec, values: Dict[str, Any]):
    """Run one module from command-line flags; exit code 1 when it fails"""
    renderer = OutcomeRenderer(console)
    driver = ExecutionDriver(renderer=renderer)

    unsubscribe = channel.subscribe(renderer.print_finding)
    try:
        outcome = asyncio.run(driver.execute(spec, preset_answers(values)))
    finally:
        unsubscribe()

    log.info(f"{spec.name} finished with status {outcome.status.value}")
    if outcome.failed:
        raise typer.Exit(code=1)


registry.register_with_typer(app, execute_module)


def main():
    """
    Main entry point for Ringbox.
    Parses arguments using Typer and routes to the shell or a module.
    """
    try:
        config.validate()
        logger.clear_old_logs()
        log.info("Ringbox started")

        app()

    except UserCancelledError:
        console.print("\n[bold yellow]Operation cancelled by user[/bold yellow]")
        log.info("User cancelled operation")
        raise typer.Exit(code=0)

    except RingboxException as e:
        console.print(f"\n[bold red]Error: {e.message}[/bold red]")
        if e.details:
            console.print(f"[dim]Details: {e.details}[/dim]")
        log.error(f"{e.code}: {e.message}")
        raise typer.Exit(code=1)

    except KeyboardInterrupt:
        console.print("\n[bold yellow]Operation cancelled by user[/bold yellow]")
        log.info("User interrupted operation (Ctrl+C)")
        raise typer.Exit(code=0)

    except Exception as e:
        console.print(f"\n[bold red]Unexpected error: {str(e)}[/bold red]")
        log.critical(f"Unexpected error: {str(e)}", exc_info=True)
        console.print(f"[dim]Check logs for more details: {logger.log_file or config.get('logging.directory')}[/dim]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    main()
