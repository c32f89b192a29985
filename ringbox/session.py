#!/usr/bin/env python3
"""
Ringbox session store.

Holds what the modules found during the session, grouped by host. The
store is plain JSON data so it can be exported, imported back and fed to
the HTML report as-is.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import FileOperationError
from .logger import logger

log = logger.get_logger("session")


class SessionStore:
    """Per-host findings of the current session"""

    def __init__(self):
        self.hosts: Dict[str, Any] = {}

    def record(self, module: str, target: Optional[str], result: Any) -> None:
        host = str(target) if target else "unknown"
        runs = self.hosts.setdefault(host, {}).setdefault(module, [])
        runs.append({
            "timestamp": datetime.now().isoformat(),
            "result": result,
        })
        log.debug(f"Recorded {module} result for {host}")

    def get(self, host_id: Optional[str] = None) -> Any:
        """A single host when ``host_id`` is given, the whole store otherwise"""
        if host_id:
            return self.hosts.get(host_id)
        return self.hosts

    def import_file(self, path: str) -> Path:
        """
        Replace the store with the JSON content of ``path``

        Raises:
            FileOperationError: If the file cannot be read or parsed
        """
        file_path = Path(path).expanduser().resolve()
        try:
            content = file_path.read_text(encoding='utf-8')
        except OSError as e:
            raise FileOperationError(f"Reading the file: {e}", filepath=str(file_path), operation="read")

        try:
            self.hosts = json.loads(content)
        except json.JSONDecodeError as e:
            raise FileOperationError(f"Parsing the file: {e}", filepath=str(file_path), operation="parse")

        log.info(f"Session imported from {file_path}")
        return file_path

    def export_file(self, path: str) -> Path:
        """Write the store to ``path`` as JSON"""
        file_path = Path(path).expanduser().resolve()
        try:
            file_path.write_text(json.dumps(self.hosts, default=str), encoding='utf-8')
        except OSError as e:
            raise FileOperationError(f"Writing the file: {e}", filepath=str(file_path), operation="write")

        log.info(f"Session exported to {file_path}")
        return file_path
