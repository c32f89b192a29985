#!/usr/bin/env python3
"""
Central module registry for Ringbox.

Every module is described here with a small declarative spec: its options
in prompt order and the coroutine that runs it. The shell and the command
line both read from this registry, nothing is discovered at runtime.
"""

from __future__ import annotations

import difflib
from typing import Any, Callable, Dict, Iterator, List, Tuple

import typer

from ringbox_modules import banner_grab, ftp_brute, http_brute

from .config import config
from .exceptions import ConfigurationError, UnknownModuleError
from .logger import logger
from .options import EqualsOneOf, ModuleSpec, OptionKind, OptionSpec, iter_dangling_predicates

log = logger.get_logger("registry")


class ModuleRegistry:
    def __init__(self) -> None:
        self._modules: Dict[str, ModuleSpec] = {}

    @property
    def modules(self) -> List[ModuleSpec]:
        return list(self._modules.values())

    @property
    def names(self) -> List[str]:
        return list(self._modules)

    def add(self, spec: ModuleSpec) -> None:
        if spec.name in self._modules:
            raise ConfigurationError(f"Module '{spec.name}' is already registered", config_key=spec.name)

        names = [option.name for option in spec.options]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Module '{spec.name}' declares duplicate options: {', '.join(duplicates)}",
                config_key=spec.name,
            )

        for option, reason in iter_dangling_predicates(spec):
            log.warning(f"Option '{option.name}' of {spec.name} {reason}; it will never be shown")

        self._modules[spec.name] = spec

    def get(self, name: str) -> ModuleSpec:
        try:
            return self._modules[name]
        except KeyError:
            raise UnknownModuleError(name) from None

    def search(self, term: str) -> List[ModuleSpec]:
        term = term.lower().strip()
        return [
            spec for spec in self._modules.values()
            if term in spec.name.lower() or term in spec.help.lower() or term in spec.category.lower()
        ]

    def suggest(self, name: str, limit: int = 3) -> List[Tuple[str, float]]:
        """Closest module names with a similarity score"""
        matches = difflib.get_close_matches(name, self.names, n=limit, cutoff=0.5)
        return [(match, difflib.SequenceMatcher(None, name, match).ratio()) for match in matches]

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[ModuleSpec]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def register_with_typer(self, app: typer.Typer, execute: Callable[[ModuleSpec, Dict[str, Any]], None]) -> None:
        for spec in self._modules.values():
            app.command(spec.name, help=spec.help)(spec.build_typer_handler(execute))


registry = ModuleRegistry()


# ---------------------------------------------------------------------------
# Shared option sets
# ---------------------------------------------------------------------------


def _credential_options(default_users: str, default_passwords: str) -> List[OptionSpec]:
    return [
        OptionSpec("users", "User (or file with them, or dict:<name>) to test",
                   default=default_users, kind=OptionKind.USER_PASS),
        OptionSpec("passwords", "Password (or file with them, or dict:<name>) to test",
                   default=default_passwords, kind=OptionKind.USER_PASS),
        OptionSpec("user_as_pass", "Test the same user as password for each one",
                   default="yes", kind=OptionKind.YES_NO),
        OptionSpec("delay", "Delay between requests in ms",
                   default=config.get("bruteforce.delay_ms", 0), kind=OptionKind.POSITIVE_INT),
    ]


def _add_modules() -> None:
    registry.add(
        ModuleSpec(
            name="ftp-brute",
            help="Try to brute-force valid credentials for the FTP protocol",
            category="bruteforce",
            options=[
                OptionSpec("target", "IP address or host to brute-force", default="127.0.0.1", kind=OptionKind.TARGET),
                OptionSpec("port", "Port of the server", default="21", kind=OptionKind.PORT),
                *_credential_options("anonymous", "anonymous"),
            ],
            runner=ftp_brute.run,
        )
    )

    registry.add(
        ModuleSpec(
            name="http-brute",
            help="Try to brute-force valid credentials for HTTP Basic/Digest auth or a login form",
            category="bruteforce",
            options=[
                OptionSpec("url", "URL of the protected resource or login form", kind=OptionKind.URL),
                OptionSpec("auth", "Authentication scheme", default="basic",
                           kind=OptionKind.CHOICE, choices=["basic", "digest", "form"]),
                OptionSpec("method", "HTTP method", default="GET", kind=OptionKind.CHOICE,
                           choices=["GET", "HEAD", "POST"], when=EqualsOneOf("auth", ("basic", "digest"))),
                OptionSpec("user_field", "Form field carrying the user", default="username",
                           when=EqualsOneOf("auth", "form")),
                OptionSpec("pass_field", "Form field carrying the password", default="password",
                           when=EqualsOneOf("auth", "form")),
                OptionSpec("failure_marker", "Text present in the response when the login fails", default="",
                           when=EqualsOneOf("auth", "form")),
                *_credential_options("dict:http-users", "dict:passwords"),
            ],
            runner=http_brute.run,
        )
    )

    registry.add(
        ModuleSpec(
            name="banner-grab",
            help="Read the greeting banner of a TCP service",
            category="recon",
            options=[
                OptionSpec("target", "IP address or host", default="127.0.0.1", kind=OptionKind.TARGET),
                OptionSpec("port", "TCP port", default="21", kind=OptionKind.PORT),
                OptionSpec("timeout", "Seconds to wait for the banner", default=5, kind=OptionKind.POSITIVE_INT),
            ],
            runner=banner_grab.run,
        )
    )


_add_modules()
