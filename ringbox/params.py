#!/usr/bin/env python3
"""
Session-wide global parameters.

A value set here is proposed as the default for every module option with
the same name, so the user does not retype a target for each module.
"""

from typing import Any, Dict, Iterator

from .exceptions import ValidationError
from .logger import logger

log = logger.get_logger("params")


class GlobalParameters:
    """Created once per shell session and handed to the compiler and the driver"""

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def set(self, name: str, value: Any) -> None:
        if not name:
            raise ValidationError("Empty name", field="name")
        if value is None or value == "":
            raise ValidationError("Empty value", field="value")
        self._values[name] = value
        log.debug(f"Global parameter set: {name}")

    def unset(self, name: str) -> bool:
        removed = self._values.pop(name, None) is not None
        if removed:
            log.debug(f"Global parameter removed: {name}")
        return removed

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def env(self) -> Dict[str, Any]:
        """Snapshot of every global parameter"""
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self):
        return self._values.keys()
