# ringbox_modules/ftp_brute.py

"""
FTP credential brute-forcer
"""

import asyncio
import ftplib
from typing import Any, Dict, List

from ringbox.bruteforce import brute_force
from ringbox.config import config
from ringbox.exceptions import RemoteRejection, TransportError
from ringbox.logger import logger

log = logger.get_logger("modules.ftp_brute")

# "530 Login incorrect" and friends
REJECTION_CODES = ("530",)


def try_login(host: str, port: int, user: str, password: str, timeout: float) -> None:
    """
    One FTP login attempt on a fresh connection.

    Raises:
        RemoteRejection: The server refused the credentials
        TransportError: Anything else went wrong
    """
    ftp = ftplib.FTP(timeout=timeout)
    try:
        ftp.connect(host, port)
        ftp.login(user, password)
    except ftplib.error_perm as e:
        if str(e).startswith(REJECTION_CODES):
            raise RemoteRejection(str(e), user=user)
        raise TransportError(f"Unexpected FTP reply: {e}", target=host, port=port) from e
    except (OSError, EOFError, ftplib.Error) as e:
        raise TransportError(str(e) or type(e).__name__, target=host, port=port) from e
    finally:
        ftp.close()


async def run(answers: Dict[str, Any]) -> List[Dict[str, str]]:
    host = answers["target"]
    port = answers["port"]
    timeout = config.get("bruteforce.timeout", 10)
    log.info(f"FTP brute-force against {host}:{port}")

    async def attempt(user: str, password: str) -> None:
        # ftplib blocks, keep it off the event loop
        await asyncio.to_thread(try_login, host, port, user, password, timeout)

    result = await brute_force(
        attempt,
        answers.get("users"),
        answers.get("passwords"),
        user_as_pass=answers.get("user_as_pass", False),
        delay_ms=answers.get("delay", 0),
    )
    return result.to_list()
