"""Bounded readiness polling for background servers."""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


logger = logging.getLogger(__name__)


class ProbeTarget(Protocol):
    """Something that can be checked for reachability."""

    def check(self, timeout: float) -> bool:
        ...

    def describe(self) -> str:
        ...


@dataclass(frozen=True)
class TcpTarget:
    """Ready once a TCP connection can be opened."""

    host: str
    port: int

    def check(self, timeout: float) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=timeout):
                return True
        except OSError:
            return False

    def describe(self) -> str:
        return f"tcp://{self.host}:{self.port}"


@dataclass(frozen=True)
class HttpTarget:
    """Ready once a GET request returns a 2xx status."""

    url: str

    def check(self, timeout: float) -> bool:
        try:
            with urlopen(Request(self.url, method="GET"), timeout=timeout) as resp:
                return 200 <= resp.status < 300
        except HTTPError:
            return False
        except (URLError, OSError, ValueError):
            return False

    def describe(self) -> str:
        return self.url


class ProbeOutcome(str, Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ProbeReport:
    outcome: ProbeOutcome
    attempts: int
    waited_seconds: float
    reason: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.outcome is ProbeOutcome.READY


class ReadinessProbe:
    """Poll a target every ``interval`` seconds until it answers or ``deadline`` elapses."""

    def __init__(
        self,
        request_timeout: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.request_timeout = request_timeout
        self._clock = clock
        self._sleep = sleep

    def wait_ready(
        self,
        target: ProbeTarget,
        interval: float,
        deadline: float,
        alive: Optional[Callable[[], bool]] = None,
    ) -> ProbeReport:
        """
        Block until ``target`` is reachable.

        ``alive`` lets the caller end polling early when the process behind the
        target is gone; that case is reported as timed out with a reason.
        """
        start = self._clock()
        attempts = 0
        while True:
            attempts += 1
            remaining = deadline - (self._clock() - start)
            if target.check(max(0.01, min(self.request_timeout, remaining))):
                waited = round(self._clock() - start, 3)
                logger.info(
                    "%s ready after %.2fs (%d attempts)", target.describe(), waited, attempts
                )
                return ProbeReport(ProbeOutcome.READY, attempts, waited)
            if alive is not None and not alive():
                return ProbeReport(
                    ProbeOutcome.TIMED_OUT,
                    attempts,
                    round(self._clock() - start, 3),
                    reason="server process exited before becoming ready",
                )
            elapsed = self._clock() - start
            if elapsed + interval > deadline:
                logger.warning(
                    "%s not ready after %.2fs (%d attempts)",
                    target.describe(),
                    elapsed,
                    attempts,
                )
                return ProbeReport(
                    ProbeOutcome.TIMED_OUT,
                    attempts,
                    round(elapsed, 3),
                    reason=f"no answer from {target.describe()} within {deadline}s",
                )
            self._sleep(interval)
