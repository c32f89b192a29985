#!/usr/bin/env python3
"""
Option prompt compiler.

Turns a module's option list plus the session's global parameters into an
ordered list of prompts, then resolves them one by one. Later options may be
hidden depending on earlier answers, so resolution is strictly sequential.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .logger import logger
from .options import MISSING, ModuleSpec, OptionKind, OptionSpec, VisibilityPredicate

log = logger.get_logger("prompting")


@dataclass(frozen=True)
class PromptSpec:
    name: str
    message: str
    default: Any = MISSING
    when: Optional[VisibilityPredicate] = None
    kind: OptionKind = OptionKind.STRING
    choices: Optional[Sequence[str]] = None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def is_visible(self, answers: Mapping[str, Any]) -> bool:
        return self.when is None or self.when.evaluate(answers)


# Returns the raw answer, or None to take the prompt's default
AskCallable = Callable[[PromptSpec], Awaitable[Optional[str]]]


def effective_default(option: OptionSpec, params: Mapping[str, Any]) -> Any:
    """Global parameter first, then the option's own default, else MISSING"""
    if option.name in params:
        return params[option.name]
    if option.has_default:
        return option.default
    return MISSING


def build_label(option: OptionSpec) -> str:
    return f"* {option.name or ''}: {option.help or ''} "


def compile_prompts(spec: ModuleSpec, params: Optional[Mapping[str, Any]] = None) -> List[PromptSpec]:
    params = params if params is not None else {}
    prompts = [
        PromptSpec(
            name=option.name,
            message=build_label(option),
            default=effective_default(option, params),
            when=option.when,
            kind=option.kind,
            choices=option.choices,
        )
        for option in spec.options
    ]
    log.debug(f"Compiled {len(prompts)} prompts for {spec.name}")
    return prompts


async def resolve_answers(prompts: Sequence[PromptSpec], ask: AskCallable) -> Dict[str, Any]:
    """
    Ask every visible prompt in declaration order.

    Hidden prompts are left out of the answers entirely. When ``ask``
    returns None the prompt's default is used, or an empty string when
    there is none.
    """
    answers: Dict[str, Any] = {}
    for prompt in prompts:
        if not prompt.is_visible(answers):
            log.debug(f"Skipping hidden option {prompt.name}")
            continue

        value = await ask(prompt)
        if value is None:
            value = prompt.default if prompt.has_default else ""
        answers[prompt.name] = value

    return answers


def preset_answers(values: Mapping[str, Any]) -> AskCallable:
    """Build an ``ask`` callable that answers from a fixed mapping"""
    async def ask(prompt: PromptSpec) -> Optional[str]:
        return values.get(prompt.name)

    return ask
