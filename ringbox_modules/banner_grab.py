# ringbox_modules/banner_grab.py

"""
TCP service banner grabber
"""

import asyncio
import socket
from typing import Any, Dict

from ringbox.exceptions import TransportError
from ringbox.logger import logger

log = logger.get_logger("modules.banner_grab")

MAX_BANNER = 1024


def grab_banner(host: str, port: int, timeout: float) -> str:
    try:
        with socket.create_connection((host, port), timeout=timeout) as sock:
            try:
                data = sock.recv(MAX_BANNER)
            except socket.timeout:
                # Connected, but the service waits for the client to speak first
                return ""
    except OSError as e:
        raise TransportError(f"Could not connect: {e}", target=host, port=port) from e

    return data.decode("utf-8", errors="replace").strip()


async def run(answers: Dict[str, Any]) -> Dict[str, Any]:
    host = answers["target"]
    port = answers["port"]
    timeout = answers.get("timeout", 5) or 5
    log.info(f"Grabbing banner from {host}:{port}")

    banner = await asyncio.to_thread(grab_banner, host, port, timeout)
    if not banner:
        return {}
    return {"host": host, "port": port, "banner": banner}
