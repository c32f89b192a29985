#!/usr/bin/env python3
"""
Local error logs for module crashes.

When a module fails with something other than a Ringbox error the shell
offers to save a log of it. The log names the module, the options it ran
with and the error code, with targets and credentials scrubbed out. Nothing
leaves the machine.
"""

import hashlib
import re
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rich.console import Console

from .exceptions import RingboxException
from .logger import logger

log = logger.get_logger("errors")

# Options holding credential lists never reach a log
CREDENTIAL_OPTIONS = frozenset({"users", "passwords"})
SECRET_NAME = re.compile(r"passw(or)?d|secret|token", re.IGNORECASE)

SCRUB_RULES = [
    (re.compile(r'https?://[^\s<>"{}|\\^`\[\]]+', re.IGNORECASE), "[URL]"),
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), "[IP]"),
    (re.compile(r"\b[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}\b"), "[EMAIL]"),
    (re.compile(r'(?:password|passwd|pass|token|key|secret)["\s:=]+[^\s,;}\]]+', re.IGNORECASE), "[CREDENTIAL]"),
    (re.compile(r"/home/[^/\s]+"), "/home/[USER]"),
    (re.compile(r"C:\\Users\\[^\\]+", re.IGNORECASE), r"C:\\Users\\[USER]"),
]


def scrub(text: Any) -> str:
    """``text`` with hosts, URLs, mail addresses, credentials and user names masked"""
    if text is None:
        return ""
    result = str(text)
    for pattern, replacement in SCRUB_RULES:
        result = pattern.sub(replacement, result)
    return result


def loggable_answers(answers: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """The answers safe to keep in a log: credential options dropped, the rest scrubbed"""
    if not answers:
        return {}
    return {
        name: scrub(value)
        for name, value in answers.items()
        if name not in CREDENTIAL_OPTIONS and not SECRET_NAME.search(name)
    }


@dataclass
class ErrorReport:
    module: str
    error_type: str
    code: str
    message: str
    traceback: str
    answers: Dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))
    error_hash: str = ""

    def __post_init__(self):
        if not self.error_hash:
            key = f"{self.module}|{self.error_type}|{self.code}|{self.message[:100]}"
            self.error_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]

    def render(self) -> str:
        lines = [
            f"Module: {self.module}",
            f"Error: {self.error_type} ({self.code})",
            f"Time: {self.timestamp}",
            f"Hash: {self.error_hash}",
            "",
            "Options:",
        ]
        lines += [f"  {name} = {value}" for name, value in self.answers.items()] or ["  (none)"]
        lines += ["", "Message:", self.message, "", "Traceback:", self.traceback]
        return "\n".join(lines) + "\n"


class ErrorLogger:
    """Saved error logs under ``log_dir``, one file per distinct failure"""

    def __init__(self, log_dir: str = ".ringbox/logs"):
        self.log_dir = Path(log_dir).expanduser()

    def path_for(self, error_hash: str) -> Path:
        return self.log_dir / f"error_{error_hash}.log"

    def prepare_report(self, exception: BaseException, module: str = "unknown",
                       answers: Optional[Mapping[str, Any]] = None) -> ErrorReport:
        code = exception.code if isinstance(exception, RingboxException) else "UNEXPECTED"
        message = exception.message if isinstance(exception, RingboxException) else str(exception)
        trace = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        return ErrorReport(
            module=module,
            error_type=type(exception).__name__,
            code=code,
            message=scrub(message),
            traceback=scrub(trace),
            answers=loggable_answers(answers),
        )

    def log_error(self, report: ErrorReport) -> Tuple[bool, str]:
        """
        Write ``report`` unless the same failure was saved before

        Returns:
            ``(True, path)`` when written, ``(False, reason)`` otherwise
        """
        path = self.path_for(report.error_hash)
        if path.exists():
            return False, "Already logged"

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(report.render(), encoding="utf-8")
        except OSError as e:
            log.error(f"Could not save error log {path}: {e}")
            return False, f"Failed: {e}"

        log.info(f"Saved error log {path.name} for {report.module}")
        return True, str(path)

    def list_errors(self, limit: int = 10) -> List[Path]:
        if not self.log_dir.is_dir():
            return []
        logs = sorted(self.log_dir.glob("error_*.log"), key=lambda p: p.stat().st_mtime, reverse=True)
        return logs[:limit]

    def view_error(self, error_hash: str) -> Optional[str]:
        path = self.path_for(error_hash)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def clear_old_logs(self, days: int = 30) -> int:
        if not self.log_dir.is_dir():
            return 0
        cutoff = time.time() - days * 86400
        stale = [path for path in self.log_dir.glob("error_*.log") if path.stat().st_mtime < cutoff]
        for path in stale:
            path.unlink()
        return len(stale)


def prompt_error_report(exception: BaseException, module: str = "unknown",
                        answers: Optional[Mapping[str, Any]] = None, console: Optional[Console] = None,
                        log_dir: str = ".ringbox/logs") -> bool:
    """Show the failure and save a log of it if the user says so"""
    console = console or Console()
    error_log = ErrorLogger(log_dir=log_dir)
    report = error_log.prepare_report(exception, module, answers)

    console.print(f"\n[yellow]{module} crashed: {report.error_type}[/yellow]")
    console.print(report.message[:100], style="dim", markup=False)

    try:
        response = console.input("\n[cyan]Save an error log? (y/N): [/cyan]").strip().lower()
    except (EOFError, KeyboardInterrupt):
        return False

    if response not in ("y", "yes"):
        return False

    saved, where = error_log.log_error(report)
    if saved:
        console.print(f"[green]Error log saved to {where}[/green]")
    else:
        console.print(f"[yellow]{where}[/yellow]")
    return saved
