"""
Tests for the module registry and the bundled module declarations
"""

import pytest
import typer
from typer.testing import CliRunner

from ringbox.exceptions import ConfigurationError, UnknownModuleError
from ringbox.module_registry import ModuleRegistry, registry
from ringbox.options import EqualsOneOf, ModuleSpec, OptionSpec
from ringbox.prompting import compile_prompts


async def _noop(answers):
    return None


def make_spec(name="demo", options=None, category="misc"):
    return ModuleSpec(name=name, help=f"{name} module", options=options or [OptionSpec("target")],
                      runner=_noop, category=category)


class TestModuleRegistry:
    def test_add_and_get(self):
        reg = ModuleRegistry()
        spec = make_spec()
        reg.add(spec)

        assert reg.get("demo") is spec
        assert "demo" in reg
        assert len(reg) == 1
        assert reg.names == ["demo"]
        assert list(reg) == [spec]

    def test_unknown_module(self):
        with pytest.raises(UnknownModuleError):
            ModuleRegistry().get("nope")

    def test_duplicate_module_rejected(self):
        reg = ModuleRegistry()
        reg.add(make_spec())
        with pytest.raises(ConfigurationError):
            reg.add(make_spec())

    def test_duplicate_option_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ModuleRegistry().add(make_spec(options=[OptionSpec("port"), OptionSpec("port")]))
        assert "port" in exc_info.value.message

    def test_dangling_predicate_is_only_a_warning(self):
        reg = ModuleRegistry()
        reg.add(make_spec(options=[OptionSpec("field", when=EqualsOneOf("missing", "x"))]))
        assert "demo" in reg

    def test_search(self):
        reg = ModuleRegistry()
        reg.add(make_spec("ftp-brute", category="bruteforce"))
        reg.add(make_spec("banner-grab", category="recon"))

        assert [s.name for s in reg.search("brute")] == ["ftp-brute"]
        assert [s.name for s in reg.search("RECON")] == ["banner-grab"]
        assert reg.search("zzz") == []

    def test_suggest(self):
        reg = ModuleRegistry()
        reg.add(make_spec("ftp-brute"))
        suggestions = reg.suggest("ftp-brut")
        assert suggestions[0][0] == "ftp-brute"
        assert 0 < suggestions[0][1] <= 1

    def test_register_with_typer(self):
        reg = ModuleRegistry()
        reg.add(make_spec("demo", options=[OptionSpec("target", "Host"), OptionSpec("port", "Port")]))
        app = typer.Typer()

        @app.command("noop")
        def noop():
            pass

        calls = []
        reg.register_with_typer(app, lambda spec, values: calls.append((spec.name, values)))

        result = CliRunner().invoke(app, ["demo", "--target", "10.0.0.1"])

        assert result.exit_code == 0, result.output
        assert calls == [("demo", {"target": "10.0.0.1"})]


class TestBundledModules:
    def test_registered(self):
        assert {"ftp-brute", "http-brute", "banner-grab"} <= set(registry.names)

    def test_ftp_brute_options(self):
        spec = registry.get("ftp-brute")
        assert spec.option_names == ("target", "port", "users", "passwords", "user_as_pass", "delay")
        assert spec.option("target").default == "127.0.0.1"
        assert spec.option("port").default == "21"
        assert spec.option("users").default == "anonymous"

    def test_http_brute_form_fields_only_for_form(self):
        spec = registry.get("http-brute")
        for name in ("user_field", "pass_field", "failure_marker"):
            option = spec.option(name)
            assert option.is_visible({"auth": "form"})
            assert not option.is_visible({"auth": "basic"})
        assert spec.option("method").is_visible({"auth": "digest"})

    def test_url_has_no_default(self):
        prompts = compile_prompts(registry.get("http-brute"))
        assert not prompts[0].has_default
