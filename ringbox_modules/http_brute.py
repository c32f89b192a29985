# ringbox_modules/http_brute.py

"""
HTTP credential brute-forcer (Basic, Digest and HTML form logins)
"""

from typing import Any, Dict, List, Optional

import httpx

from ringbox.bruteforce import brute_force
from ringbox.config import config
from ringbox.exceptions import RemoteRejection, TransportError
from ringbox.logger import logger

log = logger.get_logger("modules.http_brute")

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
REJECTION_STATUSES = (401, 403)


class HttpLoginAttempt:
    """Sends one login per call through a shared client and classifies the reply"""

    def __init__(self, client: httpx.AsyncClient, answers: Dict[str, Any]):
        self.client = client
        self.url = answers["url"]
        self.auth_type = answers.get("auth", "basic")
        self.method = answers.get("method", "GET")
        self.user_field = answers.get("user_field", "username")
        self.pass_field = answers.get("pass_field", "password")
        self.failure_marker = answers.get("failure_marker", "")

    async def _send(self, user: str, password: str) -> httpx.Response:
        if self.auth_type == "form":
            return await self.client.post(self.url, data={self.user_field: user, self.pass_field: password})
        if self.auth_type == "digest":
            auth = httpx.DigestAuth(user, password)
        else:
            auth = httpx.BasicAuth(user, password)
        return await self.client.request(self.method, self.url, auth=auth)

    async def __call__(self, user: str, password: str) -> None:
        try:
            response = await self._send(user, password)
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}", target=self.url) from e

        status = response.status_code
        if status in REJECTION_STATUSES:
            raise RemoteRejection(f"HTTP {status}", user=user)
        if status >= 400:
            raise TransportError(f"Unexpected HTTP status {status}", target=self.url)
        if self.auth_type == "form" and self.failure_marker and self.failure_marker in response.text:
            raise RemoteRejection("Failure marker found in the response", user=user)


def build_client(timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=timeout or config.get("bruteforce.timeout", 10),
        verify=config.get("bruteforce.verify_tls", False),
        follow_redirects=False,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


async def run(answers: Dict[str, Any], transport: Optional[httpx.AsyncBaseTransport] = None) -> List[Dict[str, str]]:
    log.info(f"HTTP {answers.get('auth', 'basic')} brute-force against {answers['url']}")

    async with build_client(transport=transport) as client:
        result = await brute_force(
            HttpLoginAttempt(client, answers),
            answers.get("users"),
            answers.get("passwords"),
            user_as_pass=answers.get("user_as_pass", False),
            delay_ms=answers.get("delay", 0),
        )
    return result.to_list()
