#!/usr/bin/env python3
"""
Progress channel carrying live findings from running modules to the shell
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .logger import logger

log = logger.get_logger("events")


@dataclass(frozen=True)
class Finding:
    pair: Tuple[str, Optional[str]]
    valid: bool

    def label(self) -> str:
        first, second = self.pair
        if second:
            return f"{first}  :  {second}"
        return str(first)


Subscriber = Callable[[Finding], None]


class ProgressChannel:
    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a function that removes it"""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, first: str, second: Optional[str] = None, valid: bool = False) -> Finding:
        finding = Finding(pair=(first, second), valid=valid)
        for callback in list(self._subscribers):
            try:
                callback(finding)
            except Exception:
                # A broken renderer must not stop the module run
                log.exception("Progress subscriber failed")
        return finding

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


channel = ProgressChannel()
