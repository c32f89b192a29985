#!/usr/bin/env python3
"""
Tests for the interactive shell and the typer command line
"""

import asyncio
import io
import json
import os
import signal
import sys
from unittest.mock import AsyncMock, Mock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from ringbox.cli.interactive_cli import InteractiveCLI
from ringbox.driver import RunStatus
from ringbox.exceptions import TransportError
from ringbox.module_registry import registry
from ringbox.options import ModuleSpec
from ringbox.prompting import PromptSpec
from ringbox_main import app


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def cli(output):
    prompt_session = Mock()
    prompt_session.prompt_async = AsyncMock(return_value="")
    cli = InteractiveCLI(output=Console(file=output, width=120, color_system=None), prompt_session=prompt_session)
    return cli


class TestCommandDispatch:
    def test_show_modules(self, cli):
        cli.ui_formatter = Mock()
        asyncio.run(cli.handle_command("show modules"))
        cli.ui_formatter.print_module_list.assert_called_once()

    def test_unknown_command_with_typo(self, cli):
        cli.ui_formatter = Mock()
        asyncio.run(cli.handle_command("shwo modules"))

        assert "Unknown command" in str(cli.ui_formatter.print_status.call_args)
        suggestions = cli.ui_formatter.print_suggestion_box.call_args[0][1]
        assert suggestions[0][0] == "show"

    def test_blank_input_is_ignored(self, cli):
        cli.ui_formatter = Mock()
        asyncio.run(cli.handle_command("   "))
        cli.ui_formatter.print_status.assert_not_called()

    @pytest.mark.parametrize("command", ["exit", "quit", "q", "EXIT"])
    def test_exit(self, cli, command):
        asyncio.run(cli.handle_command(command))
        assert cli.should_exit

    def test_help_lists_commands(self, cli, output):
        asyncio.run(cli.handle_command("help"))
        text = output.getvalue()
        assert "hosts/report" in text
        assert "ftp-brute" in text

    def test_info(self, cli, output):
        cli.do_set("target 10.9.9.9")
        asyncio.run(cli.handle_command("info ftp-brute"))
        text = output.getvalue()
        assert "user_as_pass" in text
        assert "10.9.9.9" in text

    def test_info_unknown_module(self, cli):
        cli.ui_formatter = Mock()
        cli.do_info("ftp-brut")
        assert "not found" in str(cli.ui_formatter.print_status.call_args)
        cli.ui_formatter.print_suggestion_box.assert_called_once()

    def test_search(self, cli):
        cli.ui_formatter = Mock()
        cli.do_search("brute")
        modules = cli.ui_formatter.print_module_list.call_args[0][0]
        assert {spec.name for spec in modules} == {"ftp-brute", "http-brute"}

    def test_search_without_match(self, cli):
        cli.ui_formatter = Mock()
        cli.do_search("zzzz")
        assert "No modules" in str(cli.ui_formatter.print_status.call_args)

    def test_dicts(self, cli, output):
        cli.do_dicts("")
        assert "dict:passwords" in output.getvalue()


class TestGlobalParameters:
    def test_set_and_env(self, cli, output):
        cli.do_set("port 2121")
        cli.do_env("")
        assert cli.params.get("port") == "2121"
        assert "2121" in output.getvalue()

    def test_set_usage(self, cli):
        cli.ui_formatter = Mock()
        cli.do_set("port")
        assert "Usage" in str(cli.ui_formatter.print_status.call_args)
        assert "port" not in cli.params

    def test_unset(self, cli):
        cli.do_set("port 2121")
        cli.ui_formatter = Mock()
        cli.do_unset("port")
        assert "port" not in cli.params
        cli.do_unset("port")
        assert "not set" in str(cli.ui_formatter.print_status.call_args)

    def test_env_empty(self, cli):
        cli.ui_formatter = Mock()
        cli.do_env("")
        assert "No global parameters" in str(cli.ui_formatter.print_status.call_args)


class TestAsk:
    def test_prefills_default(self, cli):
        prompt = PromptSpec(name="port", message="* port: Port ", default="21")
        cli.session.prompt_async.return_value = "  2121 "

        assert asyncio.run(cli.ask(prompt)) == "2121"
        args, kwargs = cli.session.prompt_async.call_args
        assert args[0] == "* port: Port "
        assert kwargs["default"] == "21"

    def test_boolean_default_shown_as_yes(self, cli):
        prompt = PromptSpec(name="user_as_pass", message="x", default=True)
        asyncio.run(cli.ask(prompt))
        assert cli.session.prompt_async.call_args[1]["default"] == "yes"

    def test_blank_answer_takes_default(self, cli):
        prompt = PromptSpec(name="url", message="x")
        cli.session.prompt_async.return_value = "   "
        assert asyncio.run(cli.ask(prompt)) is None
        assert cli.session.prompt_async.call_args[1]["default"] == ""


class TestRunModule:
    @patch("ringbox_modules.banner_grab.grab_banner", return_value="220 ready")
    def test_bare_module_name_runs_it(self, grab_banner, cli):
        asyncio.run(cli.handle_command("banner-grab"))

        grab_banner.assert_called_once_with("127.0.0.1", 21, 5)
        runs = cli.store.get("127.0.0.1")["banner-grab"]
        assert runs[0]["result"]["banner"] == "220 ready"

    @patch("ringbox_modules.banner_grab.grab_banner", return_value="SSH-2.0-OpenSSH")
    def test_run_uses_global_parameters(self, grab_banner, cli):
        cli.do_set("target 10.0.0.7")
        cli.do_set("port 22")

        outcome = asyncio.run(cli.run_module("banner-grab"))

        assert outcome.status is RunStatus.SUCCESS
        grab_banner.assert_called_once_with("10.0.0.7", 22, 5)

    def test_run_without_name(self, cli):
        cli.ui_formatter = Mock()
        asyncio.run(cli.handle_command("run"))
        assert "Module name required" in str(cli.ui_formatter.print_status.call_args)

    def test_run_unknown_module(self, cli):
        cli.ui_formatter = Mock()
        assert asyncio.run(cli.run_module("nope")) is None
        assert "not found" in str(cli.ui_formatter.print_status.call_args)

    @patch("ringbox.cli.interactive_cli.prompt_error_report")
    @patch("ringbox_modules.banner_grab.grab_banner", side_effect=ZeroDivisionError("bug"))
    def test_unexpected_failure_offers_error_report(self, grab_banner, prompt_error_report, cli):
        outcome = asyncio.run(cli.run_module("banner-grab"))

        assert outcome.status is RunStatus.ERROR
        assert prompt_error_report.called
        assert prompt_error_report.call_args[1]["module"] == "banner-grab"

    @patch("ringbox.cli.interactive_cli.prompt_error_report")
    @patch("ringbox_modules.banner_grab.grab_banner", side_effect=TransportError("refused"))
    def test_operational_failure_does_not_offer_report(self, grab_banner, prompt_error_report, cli):
        outcome = asyncio.run(cli.run_module("banner-grab"))

        assert outcome.status is RunStatus.ERROR
        prompt_error_report.assert_not_called()

    @pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
    def test_ctrl_c_stops_module_and_keeps_shell(self, cli, output):
        async def slow(answers):
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.sleep(5)
            return {"never": True}

        spec = ModuleSpec(name="slow", help="Slow module", options=[], runner=slow)
        cli.session.prompt_async = AsyncMock(side_effect=["slow", "exit"])

        with patch.dict(registry._modules, {"slow": spec}):
            asyncio.run(cli.run())

        assert "Module run interrupted" in output.getvalue()
        assert "Goodbye" in output.getvalue()
        assert cli.store.get() == {}

    @pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
    def test_sigint_handler_removed_after_run(self, cli):
        async def quick(answers):
            return {"ok": True}

        async def main():
            outcome = await cli.run_module("quick")
            return outcome, asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)

        spec = ModuleSpec(name="quick", help="Quick module", options=[], runner=quick)
        with patch.dict(registry._modules, {"quick": spec}):
            outcome, still_installed = asyncio.run(main())

        assert outcome.status is RunStatus.SUCCESS
        assert still_installed is False

    @patch("ringbox.cli.interactive_cli.prompt_error_report")
    @patch("ringbox_modules.banner_grab.grab_banner", side_effect=ZeroDivisionError("bug"))
    def test_error_report_gets_answers(self, grab_banner, prompt_error_report, cli):
        asyncio.run(cli.run_module("banner-grab"))

        assert prompt_error_report.call_args[1]["answers"]["port"] == 21

    @patch("ringbox_modules.banner_grab.grab_banner", return_value="220 ready")
    def test_channel_subscription_is_released(self, grab_banner, cli):
        from ringbox.events import channel

        before = channel.subscriber_count
        asyncio.run(cli.run_module("banner-grab"))
        assert channel.subscriber_count == before


class TestHosts:
    def test_hosts_empty(self, cli):
        cli.ui_formatter = Mock()
        cli.do_hosts("")
        assert "No hosts" in str(cli.ui_formatter.print_status.call_args)

    def test_hosts_unknown_id(self, cli):
        cli.store.record("banner-grab", "10.0.0.1", {"banner": "x"})
        cli.ui_formatter = Mock()
        cli.do_hosts("10.0.0.2")
        assert "not found" in str(cli.ui_formatter.print_status.call_args)

    def test_hosts_shows_json(self, cli, output):
        cli.store.record("banner-grab", "10.0.0.1", {"banner": "220 ready"})
        cli.do_hosts("10.0.0.1")
        assert "220 ready" in output.getvalue()

    def test_export_import_report(self, cli, tmp_path):
        cli.store.record("banner-grab", "10.0.0.1", {"banner": "220 ready"})
        export_path = tmp_path / "hosts.json"
        report_path = tmp_path / "report.html"

        asyncio.run(cli.handle_command(f"hosts/export {export_path}"))
        asyncio.run(cli.handle_command(f"hosts/report {report_path}"))

        assert json.loads(export_path.read_text(encoding="utf-8"))["10.0.0.1"]
        assert "10.0.0.1" in report_path.read_text(encoding="utf-8")

        cli.store.hosts = {}
        asyncio.run(cli.handle_command(f"hosts/import {export_path}"))
        assert "10.0.0.1" in cli.store.hosts

    def test_import_failure_is_reported(self, cli, tmp_path):
        cli.ui_formatter = Mock()
        cli.do_hosts_import(str(tmp_path / "missing.json"))
        cli.ui_formatter.print_status.assert_called_once()
        assert cli.ui_formatter.print_status.call_args[0][0] == "error"


class TestErrorsCommand:
    def test_list_empty(self, cli, tmp_path):
        cli.error_logger.log_dir = tmp_path
        cli.ui_formatter = Mock()
        cli.do_errors("")
        assert "No saved error logs" in str(cli.ui_formatter.print_status.call_args)

    def test_view_unknown(self, cli, tmp_path):
        cli.error_logger.log_dir = tmp_path
        cli.ui_formatter = Mock()
        cli.do_errors("view abcdef123456")
        assert cli.ui_formatter.print_status.call_args[0][0] == "error"

    def test_usage(self, cli):
        cli.ui_formatter = Mock()
        cli.do_errors("bogus")
        assert "Usage" in str(cli.ui_formatter.print_status.call_args)


class TestShellLoop:
    def test_loop_survives_errors_and_exits(self, cli, output):
        cli.session.prompt_async.side_effect = ["set target 10.0.0.1", KeyboardInterrupt(), "env", EOFError()]

        asyncio.run(cli.run())

        assert cli.should_exit
        assert cli.params.get("target") == "10.0.0.1"
        assert "Goodbye" in output.getvalue()

    def test_loop_recovers_from_command_crash(self, cli, output):
        cli.session.prompt_async.side_effect = ["env", "exit"]
        cli.do_env = Mock(side_effect=RuntimeError("broken"))

        asyncio.run(cli.run())

        assert "Command failed" in output.getvalue()
        assert cli.should_exit


class TestTyperApp:
    @pytest.fixture
    def runner(self):
        return CliRunner()

    def test_version(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Ringbox" in result.stdout

    def test_list_modules(self, runner):
        result = runner.invoke(app, ["list-modules"])
        assert result.exit_code == 0
        assert "ftp-brute" in result.stdout

    def test_module_help(self, runner):
        result = runner.invoke(app, ["http-brute", "--help"])
        assert result.exit_code == 0
        assert "--url" in result.stdout

    @patch("ringbox_modules.banner_grab.grab_banner", return_value="220 ready")
    def test_module_command_success(self, grab_banner, runner):
        result = runner.invoke(app, ["banner-grab", "--target", "10.0.0.3", "--port", "2121"])

        assert result.exit_code == 0, result.stdout
        grab_banner.assert_called_once_with("10.0.0.3", 2121, 5)

    @patch("ringbox_modules.banner_grab.grab_banner", side_effect=TransportError("refused"))
    def test_module_command_failure_exit_code(self, grab_banner, runner):
        result = runner.invoke(app, ["banner-grab", "--target", "10.0.0.3"])
        assert result.exit_code == 1

    def test_invalid_option_value_fails(self, runner):
        result = runner.invoke(app, ["http-brute"])
        assert result.exit_code == 1
