#!/usr/bin/env python3
"""
Declarative option and module specs.

Each module describes its inputs as an ordered list of ``OptionSpec``
entries. The prompt compiler turns them into questions, the driver coerces
the answers with ``OptionSpec.coerce`` and the command line builds typer
flags from the same list.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import typer

from .exceptions import ValidationError
from .validation import Validator


class _Missing:
    """Marker for "no default", so that 0, False and "" stay usable defaults"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class OptionKind(str, Enum):
    STRING = "string"
    TARGET = "target"
    PORT = "port"
    POSITIVE_INT = "positive_int"
    YES_NO = "yes_no"
    USER_PASS = "user_pass"
    URL = "url"
    CHOICE = "choice"


@dataclass(frozen=True)
class EqualsOneOf:
    """Visible only when ``field`` was answered with one of ``values`` (case-insensitive)"""

    field: str
    values: Tuple[str, ...]

    def __post_init__(self) -> None:
        values = (self.values,) if isinstance(self.values, str) else tuple(self.values)
        object.__setattr__(self, "values", tuple(str(value) for value in values))

    def evaluate(self, answers: Mapping[str, Any]) -> bool:
        if self.field not in answers:
            return False
        accepted = {value.lower() for value in self.values}
        return str(answers[self.field]).lower() in accepted


# Closed set of visibility variants
VisibilityPredicate = Union[EqualsOneOf]


@dataclass(frozen=True)
class OptionSpec:
    name: str
    help: str = ""
    default: Any = MISSING
    kind: OptionKind = OptionKind.STRING
    when: Optional[VisibilityPredicate] = None
    choices: Optional[Sequence[str]] = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def is_visible(self, answers: Mapping[str, Any]) -> bool:
        return self.when is None or self.when.evaluate(answers)

    def coerce(self, value: Any) -> Any:
        """Convert a raw answer to the Python value the module expects"""
        if self.kind is OptionKind.PORT:
            return Validator.validate_port(value)
        if self.kind is OptionKind.POSITIVE_INT:
            return Validator.validate_integer(value, min_val=0, field=self.name)
        if self.kind is OptionKind.YES_NO:
            return Validator.validate_boolean(value, field=self.name)
        if self.kind is OptionKind.TARGET:
            return Validator.validate_target(str(value))
        if self.kind is OptionKind.URL:
            return Validator.validate_url(str(value))
        if self.kind is OptionKind.CHOICE:
            return Validator.validate_choice(value, list(self.choices or ()), field=self.name)
        if value is None:
            return ""
        return str(value)

    def build_typer_parameter(self) -> inspect.Parameter:
        # Every flag is optional on the command line: unset flags fall back to
        # globals and defaults through the prompt compiler.
        show = self.default if self.has_default else None
        help_text = self.help
        if self.choices:
            help_text = f"{help_text} ({'|'.join(self.choices)})"
        return inspect.Parameter(
            name=self.name,
            kind=inspect.Parameter.POSITIONAL_OR_KEYWORD,
            default=typer.Option(None, help=help_text, show_default=show is not None and str(show)),
            annotation=Optional[str],
        )


ModuleRunner = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ModuleSpec:
    name: str
    help: str
    options: Tuple[OptionSpec, ...]
    runner: ModuleRunner
    category: str = "misc"
    option_index: Dict[str, OptionSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "option_index", {option.name: option for option in self.options})

    @property
    def option_names(self) -> Tuple[str, ...]:
        return tuple(option.name for option in self.options)

    def option(self, name: str) -> Optional[OptionSpec]:
        return self.option_index.get(name)

    def coerce(self, answers: Mapping[str, Any]) -> Dict[str, Any]:
        """Coerce resolved answers by kind; answers for unknown names pass through"""
        coerced = {}
        for name, value in answers.items():
            option = self.option(name)
            if option is None:
                coerced[name] = value
                continue
            try:
                coerced[name] = option.coerce(value)
            except ValidationError as e:
                raise ValidationError(f"{name}: {e.message}", field=name, value=value) from None
        return coerced

    @property
    def signature(self) -> inspect.Signature:
        return inspect.Signature([option.build_typer_parameter() for option in self.options])

    def build_typer_handler(self, execute: Callable[["ModuleSpec", Dict[str, Any]], None]) -> Callable[..., None]:
        def command_wrapper(**kwargs: Any) -> None:
            execute(self, {name: value for name, value in kwargs.items() if value is not None})

        command_wrapper.__signature__ = self.signature  # type: ignore[attr-defined]
        command_wrapper.__name__ = f"{self.name.replace('-', '_')}_command"
        command_wrapper.__doc__ = self.help
        return command_wrapper


def iter_dangling_predicates(spec: ModuleSpec) -> Iterable[Tuple[OptionSpec, str]]:
    """Yield (option, reason) for predicates that can never be satisfied in order"""
    seen = set()
    for option in spec.options:
        if option.when is not None and option.when.field not in seen:
            if option.when.field in spec.option_index:
                yield option, f"references '{option.when.field}' which is declared later"
            else:
                yield option, f"references unknown option '{option.when.field}'"
        seen.add(option.name)
