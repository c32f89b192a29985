#!/usr/bin/env python3

import asyncio
import inspect
import difflib
import os
import signal
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory

from ringbox.bruteforce import available_dictionaries
from ringbox.config import config
from ringbox.driver import ExecutionDriver, RunOutcome, RunStatus
from ringbox.error_reporter import ErrorLogger, prompt_error_report
from ringbox.events import channel
from ringbox.exceptions import FileOperationError, RingboxException, UnknownModuleError, ValidationError
from ringbox.logger import logger
from ringbox.module_registry import registry
from ringbox.options import MISSING
from ringbox.params import GlobalParameters
from ringbox.prompting import PromptSpec
from ringbox.report import SessionReport
from ringbox.session import SessionStore
from ringbox.ui.output import OutcomeRenderer
from ringbox.ui.ui_components import OutputFormatter
from ringbox.version import __version__

console = Console()
log = logger.get_logger("cli")

COMMANDS = {
    "help": "Show this help",
    "show": "show modules: list the available modules",
    "info": "info <module>: show a module and its options",
    "search": "search <term>: find modules by name, category or description",
    "run": "run <module>: run a module (the bare module name works too)",
    "set": "set <name> <value>: set a global parameter used as option default",
    "unset": "unset <name>: remove a global parameter",
    "env": "List the global parameters",
    "dicts": "List the built-in dictionaries (use them as dict:<name>)",
    "hosts": "hosts [id]: show what was found, for every host or just one",
    "hosts/import": "hosts/import [path]: load the session hosts from a JSON file",
    "hosts/export": "hosts/export [path]: save the session hosts to a JSON file",
    "hosts/report": "hosts/report [path]: write an HTML report of the session hosts",
    "errors": "errors [list|view <hash>|clear]: manage saved error logs",
    "exit": "Exit the shell (also quit, q)",
}


def display_header(target: Console = console):
    target.print(Panel(
        f"[bold cyan]Ringbox[/bold cyan] [dim]v{__version__}[/dim]\n"
        f"[dim]{len(registry)} modules loaded[/dim]",
        expand=False,
    ))


def _install_sigint(loop: asyncio.AbstractEventLoop, callback) -> bool:
    """Route SIGINT to ``callback``; False where the loop cannot take signal handlers"""
    try:
        loop.add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError, ValueError):
        return False
    return True


class InteractiveCLI:
    def __init__(self, output: Optional[Console] = None, prompt_session: Optional[PromptSession] = None):
        self.console = output or console
        self.should_exit = False
        self.history_file = os.path.expanduser(config.get("shell.history_file", "~/.ringbox_history"))

        self.params = GlobalParameters()
        self.store = SessionStore()
        self.renderer = OutcomeRenderer(self.console)
        self.driver = ExecutionDriver(params=self.params, session=self.store, renderer=self.renderer)
        self.ui_formatter = OutputFormatter(self.console)
        self.error_logger = ErrorLogger(log_dir=config.get("logging.directory", ".ringbox/logs"))

        self.completer = WordCompleter(list(COMMANDS) + ["quit", "q", "modules"] + registry.names, sentence=True)
        self._prompt_session = prompt_session

    @property
    def session(self) -> PromptSession:
        if self._prompt_session is None:
            self._prompt_session = PromptSession(
                history=FileHistory(self.history_file),
                auto_suggest=AutoSuggestFromHistory(),
                completer=self.completer,
            )
        return self._prompt_session

    async def run(self):
        """Main loop for the interactive shell."""
        display_header(self.console)
        self.console.print("\n[dim]Type 'help' for available commands or 'show modules' to get started.[/dim]\n")

        while not self.should_exit:
            try:
                user_input = await self.session.prompt_async(config.get("shell.prompt", "ringbox> "))
                await self.handle_command(user_input)
            except KeyboardInterrupt:
                continue
            except EOFError:
                self.should_exit = True
            except Exception as e:
                log.error(f"Command failed: {e}", exc_info=True)
                self.ui_formatter.print_status("error", f"Command failed: {e}")

        self.console.print("[yellow]Goodbye![/yellow]")

    async def handle_command(self, user_input: str):
        """Parse and execute a command."""
        user_input = user_input.strip()
        if not user_input:
            return

        parts = user_input.split(None, 1)
        command = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if command in registry:
            await self.run_module(command)
            return

        handler = getattr(self, f"do_{command.replace('/', '_')}", None)
        if handler is None:
            self.default(command)
        elif inspect.iscoroutinefunction(handler):
            await handler(arg)
        else:
            handler(arg)

    def default(self, command: str):
        candidates = list(COMMANDS) + registry.names
        matches = difflib.get_close_matches(command, candidates, n=3, cutoff=0.5)
        self.ui_formatter.print_status("error", f"Unknown command: {command}")
        if matches:
            self.ui_formatter.print_suggestion_box(
                "Unknown command",
                [(match, difflib.SequenceMatcher(None, command, match).ratio()) for match in matches],
            )

    # ============ MODULES ============

    async def ask(self, prompt: PromptSpec) -> Optional[str]:
        """Ask one option on the prompt session, pre-filled with its default"""
        default = ""
        if prompt.default is not MISSING:
            default = prompt.default
            if isinstance(default, bool):
                default = "yes" if default else "no"
        completer = WordCompleter(list(prompt.choices)) if prompt.choices else None

        answer = await self.session.prompt_async(prompt.message, default=str(default), completer=completer)
        answer = answer.strip()
        return answer if answer else None

    async def run_module(self, name: str) -> Optional[RunOutcome]:
        try:
            spec = registry.get(name)
        except UnknownModuleError as e:
            self.ui_formatter.print_status("error", e.message)
            self.ui_formatter.print_suggestion_box("Unknown module", registry.suggest(name))
            return None

        unsubscribe = channel.subscribe(self.renderer.print_finding)
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self.driver.execute(spec, self.ask))
        # Ctrl+C while the module runs stops the module, not the shell
        interruptible = _install_sigint(loop, task.cancel)
        try:
            outcome = await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            outcome = RunOutcome(spec.name, RunStatus.CANCELLED)
        finally:
            if interruptible:
                loop.remove_signal_handler(signal.SIGINT)
            unsubscribe()

        if outcome.status is RunStatus.ERROR and not isinstance(outcome.error, RingboxException):
            prompt_error_report(outcome.error, module=name, answers=outcome.answers,
                                console=self.console, log_dir=str(self.error_logger.log_dir))
        return outcome

    async def do_run(self, arg: str):
        if not arg:
            self.ui_formatter.print_status("warning", "Module name required. Use 'show modules' to list available modules.")
            return
        await self.run_module(arg.split()[0].lower())

    def do_show(self, arg: str):
        if not arg or arg.strip() == "modules":
            self.ui_formatter.print_module_list(registry.modules)
            self.console.print("\n[dim]Use 'info <module>' for detailed information[/dim]")
        else:
            self.ui_formatter.print_status("error", f"Unknown show option: {arg}. Available: modules")

    def do_info(self, arg: str):
        if not arg:
            self.ui_formatter.print_status("warning", "Usage: info <module>")
            return
        try:
            spec = registry.get(arg.strip().lower())
        except UnknownModuleError as e:
            self.ui_formatter.print_status("error", e.message)
            self.ui_formatter.print_suggestion_box("Unknown module", registry.suggest(arg.strip().lower()))
            return

        self.ui_formatter.print_module_header(spec.name, spec.help)
        self.ui_formatter.print_options_table(spec, self.params.env())

    def do_search(self, arg: str):
        if not arg:
            self.ui_formatter.print_status("warning", "Usage: search <term>")
            return
        found = registry.search(arg)
        if found:
            self.ui_formatter.print_module_list(found, title=f"Modules matching '{arg}'")
        else:
            self.ui_formatter.print_status("info", f"No modules match '{arg}'")

    # ============ GLOBAL PARAMETERS ============

    def do_set(self, arg: str):
        args = arg.split(None, 1)
        if len(args) != 2:
            self.ui_formatter.print_status("error", "Usage: set <name> <value>")
            return

        name, value = args
        try:
            self.params.set(name, value)
        except ValidationError as e:
            self.ui_formatter.print_status("error", e.message)
            return
        self.ui_formatter.print_status("success", f"{name} => {value}")

    def do_unset(self, arg: str):
        name = arg.strip()
        if not name:
            self.ui_formatter.print_status("error", "Usage: unset <name>")
        elif self.params.unset(name):
            self.ui_formatter.print_status("success", f"Unset {name}")
        else:
            self.ui_formatter.print_status("warning", f"Parameter {name} is not set")

    def do_env(self, arg: str):
        values = self.params.env()
        if not values:
            self.ui_formatter.print_status("info", "No global parameters set. Use 'set <name> <value>'.")
            return
        self.ui_formatter.print_key_values("Global parameters", values)

    def do_dicts(self, arg: str):
        names = available_dictionaries()
        if not names:
            self.ui_formatter.print_status("info", "No built-in dictionaries found")
            return
        for name in names:
            self.console.print(f"  [cyan]dict:{name}[/cyan]")

    # ============ SESSION HOSTS ============

    def do_hosts(self, arg: str):
        host_id = arg.strip() or None
        data = self.store.get(host_id)
        if host_id and data is None:
            self.ui_formatter.print_status("warning", f"Host {host_id} not found")
        elif not data:
            self.ui_formatter.print_status("info", "No hosts recorded yet")
        else:
            self.renderer.print_json(data)

    def do_hosts_import(self, arg: str):
        path = arg.strip() or config.get("session.export_path", "./report.json")
        try:
            imported = self.store.import_file(path)
        except FileOperationError as e:
            self.ui_formatter.print_status("error", e.message)
            return
        self.ui_formatter.print_status("success", f"Hosts imported from {imported}")

    def do_hosts_export(self, arg: str):
        path = arg.strip() or config.get("session.export_path", "./report.json")
        try:
            exported = self.store.export_file(path)
        except FileOperationError as e:
            self.ui_formatter.print_status("error", e.message)
            return
        self.ui_formatter.print_status("success", f"Hosts exported to {exported}")

    def do_hosts_report(self, arg: str):
        path = arg.strip() or config.get("session.report_path", "./report.html")
        try:
            written = SessionReport(self.store.hosts).write(path)
        except FileOperationError as e:
            self.ui_formatter.print_status("error", e.message)
            return
        self.ui_formatter.print_status("success", f"Report written to {written}")

    # ============ MISC ============

    def do_errors(self, arg: str):
        parts = arg.split()
        action = parts[0].lower() if parts else "list"

        if action == "list":
            logs = self.error_logger.list_errors()
            if not logs:
                self.ui_formatter.print_status("info", "No saved error logs")
                return
            for log_file in logs:
                self.console.print(f"  [cyan]{log_file.stem.replace('error_', '')}[/cyan] [dim]{log_file}[/dim]")
        elif action == "view" and len(parts) > 1:
            content = self.error_logger.view_error(parts[1])
            if content is None:
                self.ui_formatter.print_status("error", f"No error log with hash {parts[1]}")
            else:
                self.console.print(content)
        elif action == "clear":
            days = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 30
            self.error_logger.clear_old_logs(days)
            self.ui_formatter.print_status("success", f"Removed error logs older than {days} days")
        else:
            self.ui_formatter.print_status("error", "Usage: errors [list|view <hash>|clear [days]]")

    def do_help(self, arg: str):
        table = Table(title="[bold]Commands[/bold]", show_header=True, header_style="bold cyan")
        table.add_column("Command", style="cyan", no_wrap=True)
        table.add_column("Description", style="green")
        for name, description in COMMANDS.items():
            table.add_row(name, description)
        self.console.print(table)
        self.console.print(f"\n[dim]Modules: {', '.join(registry.names)}[/dim]")

    def do_exit(self, arg: str):
        """Exit the application"""
        self.should_exit = True

    def do_quit(self, arg: str):
        """Exit the application"""
        self.do_exit(arg)

    def do_q(self, arg: str):
        """Exit the application"""
        self.do_exit(arg)


def run_interactive_cli():
    cli = InteractiveCLI()
    try:
        asyncio.run(cli.run())
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Goodbye![/yellow]")
