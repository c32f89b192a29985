#!/usr/bin/env python3
"""
Module execution driver.

Resolves a module's prompts, runs it and turns whatever happens into a
``RunOutcome``. ``execute`` never raises for module or prompt failures:
they are reported and returned so the shell keeps running.
"""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import BruteForceAborted, RingboxException, UserCancelledError
from .logger import logger
from .options import ModuleSpec
from .params import GlobalParameters
from .prompting import AskCallable, compile_prompts, resolve_answers
from .session import SessionStore
from .ui.output import OutcomeRenderer

log = logger.get_logger("driver")


class RunStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class RunOutcome:
    module: str
    status: RunStatus
    result: Any = None
    error: Optional[BaseException] = field(default=None, repr=False)
    answers: Dict[str, Any] = field(default_factory=dict)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    elapsed: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status in (RunStatus.ERROR, RunStatus.CANCELLED)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "module": self.module,
            "status": self.status.value,
            "started_at": self.started_at,
            "elapsed": round(self.elapsed, 3),
        }
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            if isinstance(self.error, RingboxException):
                data["error"] = self.error.to_dict()
            else:
                data["error"] = {"error": type(self.error).__name__, "message": str(self.error)}
        return data


def is_empty_result(result: Any) -> bool:
    """None, an empty list/tuple, an empty mapping or an empty string"""
    if result is None:
        return True
    if isinstance(result, (list, tuple, str, Mapping)):
        return len(result) == 0
    return False


class ExecutionDriver:
    def __init__(
        self,
        params: Optional[GlobalParameters] = None,
        session: Optional[SessionStore] = None,
        renderer: Optional[OutcomeRenderer] = None,
    ):
        self.params = params if params is not None else GlobalParameters()
        self.session = session
        self.renderer = renderer or OutcomeRenderer()

    async def execute(self, spec: ModuleSpec, ask: AskCallable) -> RunOutcome:
        self.renderer.console.print(f"\n[bold]{spec.help}[/bold]\n")

        try:
            prompts = compile_prompts(spec, self.params)
            raw_answers = await resolve_answers(prompts, ask)
        except (KeyboardInterrupt, EOFError, UserCancelledError, asyncio.CancelledError) as e:
            log.info(f"Option prompts for {spec.name} cancelled")
            self.renderer.console.print("\n[yellow]Cancelled[/yellow]")
            return RunOutcome(spec.name, RunStatus.CANCELLED, error=e)
        except Exception as e:
            log.error(f"Getting the options for {spec.name} failed: {e}", exc_info=True)
            self.renderer.print_error_panel("Getting the options", str(e))
            return RunOutcome(spec.name, RunStatus.ERROR, error=e)

        outcome = RunOutcome(spec.name, RunStatus.SUCCESS, answers=raw_answers)
        self.renderer.print_running(spec.name)
        log.info(f"Module {spec.name} started")
        start = time.perf_counter()

        try:
            answers = spec.coerce(raw_answers)
            outcome.answers = answers
            result = await spec.runner(answers)
        except (KeyboardInterrupt, UserCancelledError, asyncio.CancelledError) as e:
            outcome.elapsed = time.perf_counter() - start
            outcome.status = RunStatus.CANCELLED
            outcome.error = e
            log.info(f"Module {spec.name} interrupted after {outcome.elapsed:.2f}s")
            self.renderer.console.print("\n[yellow]Module run interrupted[/yellow]")
            return outcome
        except Exception as e:
            outcome.elapsed = time.perf_counter() - start
            outcome.status = RunStatus.ERROR
            outcome.error = e
            if isinstance(e, BruteForceAborted) and e.partial is not None:
                outcome.result = e.partial.to_list()
            self._report_failure(spec, outcome)
            return outcome

        outcome.elapsed = time.perf_counter() - start
        log.info(f"Module {spec.name} finished in {outcome.elapsed:.2f}s")
        self.renderer.print_finished(outcome.elapsed)

        if is_empty_result(result):
            outcome.status = RunStatus.EMPTY
            self.renderer.print_empty()
            return outcome

        outcome.result = result
        try:
            self.renderer.print_result(result)
        except Exception as e:
            log.warning(f"Could not render the result of {spec.name}: {e}", exc_info=True)
            self.renderer.console.print(repr(result), markup=False, highlight=False)

        if self.session is not None:
            try:
                self.session.record(spec.name, outcome.answers.get("target") or outcome.answers.get("url"), result)
            except Exception as e:
                log.error(f"Could not record the result of {spec.name}: {e}", exc_info=True)
                self.renderer.print_error_panel("Recording the result", str(e))
        return outcome

    def _report_failure(self, spec: ModuleSpec, outcome: RunOutcome):
        error = outcome.error
        log.error(f"Module {spec.name} failed after {outcome.elapsed:.2f}s: {error}",
                  exc_info=(type(error), error, error.__traceback__))

        details = error.details if isinstance(error, RingboxException) else {"type": type(error).__name__}
        message = error.message if isinstance(error, RingboxException) else (str(error) or type(error).__name__)
        self.renderer.print_error_panel("Running the module", message, details)

        if outcome.result:
            self.renderer.console.print("[yellow]Partial result before the failure:[/yellow]")
            self.renderer.print_json(outcome.result)
