#!/usr/bin/env python3
"""
Ringbox brute-force engine.

``generate_pairs`` expands user and password lists into the ordered attack
sequence and ``ThrottledAttemptExecutor`` drives that sequence through a
protocol-specific ``attempt`` coroutine one pair at a time:

* the coroutine returns           -> the pair is valid
* it raises ``RemoteRejection``   -> the pair is invalid, the run goes on
* it raises anything else         -> the run aborts with ``BruteForceAborted``

A configurable delay separates consecutive attempts to keep the request
rate against the target bounded.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Union

from .events import ProgressChannel, channel as default_channel
from .exceptions import BruteForceAborted, FileOperationError, RemoteRejection, ValidationError
from .logger import logger

log = logger.get_logger("bruteforce")

DICTIONARIES_DIR = Path(__file__).parent / "dictionaries"
DICT_PREFIX = "dict:"


class CredentialPair(NamedTuple):
    user: str
    password: str


class AttemptStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    FATAL = "fatal"


@dataclass
class AttemptOutcome:
    pair: CredentialPair
    status: AttemptStatus
    diagnostic: Optional[str] = None
    error: Optional[BaseException] = field(default=None, repr=False)


@dataclass
class BruteForceResult:
    valid: List[CredentialPair] = field(default_factory=list)
    outcomes: List[AttemptOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    def to_list(self) -> List[dict]:
        return [pair._asdict() for pair in self.valid]


class ExecutorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


AttemptCallable = Callable[[str, str], Awaitable[object]]


# ---------------------------------------------------------------------------
# Credential sources
# ---------------------------------------------------------------------------


def available_dictionaries() -> List[str]:
    """Names of the built-in dictionaries, usable as ``dict:<name>``"""
    return sorted(path.stem for path in DICTIONARIES_DIR.glob("*.txt"))


def _read_lines(path: Path) -> List[str]:
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as file:
            return [line.strip() for line in file if line.strip()]
    except OSError as e:
        raise FileOperationError(f"Could not read wordlist: {e}", filepath=str(path), operation="read")


def load_credentials(source: Union[str, Sequence[str], None]) -> List[str]:
    """
    Resolve a user or password spec to a list of values.

    ``dict:<name>`` selects a built-in dictionary, a path to an existing
    file yields its non-empty lines, and any other string is a single value.
    An empty spec yields an empty list.
    """
    if source is None:
        return []
    if isinstance(source, (list, tuple)):
        return [str(item) for item in source]

    source = str(source)
    if not source.strip():
        return []

    if source.startswith(DICT_PREFIX):
        name = source[len(DICT_PREFIX):].strip()
        path = DICTIONARIES_DIR / f"{name}.txt"
        if not name or not path.is_file():
            raise ValidationError(
                f"Unknown dictionary '{name}', available: {', '.join(available_dictionaries())}",
                field="dictionary",
                value=name,
            )
        return _read_lines(path)

    path = Path(source).expanduser()
    if path.is_file():
        return _read_lines(path)

    return [source]


def generate_pairs(users: Iterable[str], passwords: Iterable[str], user_as_pass: bool = False) -> Iterator[CredentialPair]:
    """
    Yield the attack sequence: for each user, ``(user, user)`` first when
    ``user_as_pass`` is set, then ``(user, password)`` for every password.
    No deduplication is done.
    """
    passwords = list(passwords)
    for user in users:
        if user_as_pass:
            yield CredentialPair(user, user)
        for password in passwords:
            yield CredentialPair(user, password)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class ThrottledAttemptExecutor:
    """Sequential, rate-limited runner for one brute-force sequence"""

    def __init__(
        self,
        attempt: AttemptCallable,
        delay_ms: int = 0,
        channel: Optional[ProgressChannel] = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        if delay_ms < 0:
            raise ValidationError("Delay must be >= 0", field="delay", value=delay_ms)
        self.attempt = attempt
        self.delay_ms = delay_ms
        self.channel = channel if channel is not None else default_channel
        self._sleep = sleep
        self.state = ExecutorState.IDLE
        self.result = BruteForceResult()

    async def _classify(self, pair: CredentialPair) -> AttemptOutcome:
        try:
            await self.attempt(pair.user, pair.password)
        except RemoteRejection as e:
            return AttemptOutcome(pair, AttemptStatus.INVALID, e.message)
        except Exception as e:
            return AttemptOutcome(pair, AttemptStatus.FATAL, str(e) or type(e).__name__, error=e)
        return AttemptOutcome(pair, AttemptStatus.VALID)

    async def run(self, pairs: Iterable[CredentialPair]) -> BruteForceResult:
        if self.state is not ExecutorState.IDLE:
            raise RuntimeError(f"Executor already {self.state.value}")

        pairs = list(pairs)
        total = len(pairs)
        self.state = ExecutorState.RUNNING
        log.debug(f"Starting brute-force run: {total} pairs, delay {self.delay_ms}ms")

        for index, pair in enumerate(pairs, 1):
            outcome = await self._classify(pair)
            self.result.outcomes.append(outcome)
            log.debug(f"Attempt {index}/{total} {pair.user}: {outcome.status.value}")

            if outcome.status is AttemptStatus.FATAL:
                self.state = ExecutorState.ABORTED
                log.warning(f"Brute-force aborted at attempt {index}/{total}: {outcome.diagnostic}")
                raise BruteForceAborted(outcome.error, pair=pair, partial=self.result) from outcome.error

            if outcome.status is AttemptStatus.VALID:
                self.result.valid.append(pair)
            self.channel.emit(pair.user, pair.password, valid=outcome.status is AttemptStatus.VALID)

            if index < total and self.delay_ms > 0:
                await self._sleep(self.delay_ms / 1000)

        self.state = ExecutorState.COMPLETED
        log.debug(f"Brute-force completed: {len(self.result.valid)} valid of {total}")
        return self.result


async def brute_force(
    attempt: AttemptCallable,
    users: Union[str, Sequence[str], None],
    passwords: Union[str, Sequence[str], None],
    user_as_pass: bool = False,
    delay_ms: int = 0,
    channel: Optional[ProgressChannel] = None,
) -> BruteForceResult:
    """Resolve the credential sources and run them through a fresh executor"""
    pairs = generate_pairs(load_credentials(users), load_credentials(passwords), user_as_pass)
    executor = ThrottledAttemptExecutor(attempt, delay_ms=delay_ms, channel=channel)
    return await executor.run(pairs)
