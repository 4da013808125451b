"""Readiness polling with log down-sampling.

A ``ReadinessPoller`` is a small state machine::

    PROBING --probe succeeds--> SUCCEEDED
    PROBING --deadline passes--> FAILED_TIMEOUT

It probes immediately, then every ``interval`` seconds.  Failures are
logged only when they change (compared by *signature*, the text after the
last ``:`` of the error message) or on every ``downsample``-th repeat of an
unchanged failure, so long waits stay quiet but visibly alive.

Clock and sleep are injectable; nothing here needs real timers to test.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import Generic, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 2.0
DEFAULT_TIMEOUT_SECONDS = 20 * 60.0
DEFAULT_LOG_DOWNSAMPLE = 15


class ReadinessState(str, Enum):
    PROBING = "probing"
    SUCCEEDED = "succeeded"
    FAILED_TIMEOUT = "failed_timeout"


class ReadinessTimeoutError(TimeoutError):
    """Raised when the deadline passes without a successful probe.

    Attributes
    ----------
    last_error:
        The most recent probe failure, if any probe ran and failed.
    """

    def __init__(
        self, name: str, timeout: float, last_error: BaseException | None = None
    ) -> None:
        self.name = name
        self.timeout = timeout
        self.last_error = last_error
        message = f"{name} was not ready after {timeout:g}s"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


def error_signature(error: BaseException | str) -> str:
    """Return the text after the last ``:`` of the error message."""
    return str(error).split(":")[-1]


def should_log(
    previous: str | None,
    current: str,
    repeat_count: int,
    downsample: int = DEFAULT_LOG_DOWNSAMPLE,
) -> bool:
    """Decide whether a probe failure is worth logging.

    Parameters
    ----------
    previous:
        Signature of the previous failure (``None`` before the first one).
    current:
        Signature of this failure.
    repeat_count:
        How many times in a row *current* has repeated since it first
        appeared (0 for its first occurrence).
    downsample:
        Log every *downsample*-th repeat of an unchanged signature.
    """
    if current != previous:
        return True
    return downsample > 0 and repeat_count > 0 and repeat_count % downsample == 0


class ReadinessPoller(Generic[T]):
    """Polls *probe* until it returns or the timeout expires.

    Parameters
    ----------
    probe:
        Callable returning a value when ready and raising when not.
    interval:
        Seconds between probes.
    timeout:
        Seconds before giving up.
    downsample:
        Repeat count between logs of an unchanged failure.
    clock, sleep:
        Monotonic clock and sleep function; injectable for tests.
    name:
        What is being waited for, used in log and error messages.
    """

    def __init__(
        self,
        probe: Callable[[], T],
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        downsample: int = DEFAULT_LOG_DOWNSAMPLE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "Kubernetes API",
    ) -> None:
        self._probe = probe
        self._interval = interval
        self._timeout = timeout
        self._downsample = downsample
        self._clock = clock
        self._sleep = sleep
        self.name = name
        self._state = ReadinessState.PROBING
        self.attempts = 0
        self.logged_failures = 0
        self.last_error: BaseException | None = None

    @property
    def state(self) -> ReadinessState:
        return self._state

    def wait(self) -> T:
        """Probe until success; return the probe's result.

        Raises ``ReadinessTimeoutError`` carrying the last failure.
        """
        deadline = self._clock() + self._timeout
        previous: str | None = None
        repeats = 0

        while True:
            self.attempts += 1
            try:
                result = self._probe()
            except Exception as exc:
                self.last_error = exc
                signature = error_signature(exc)
                repeats = repeats + 1 if signature == previous else 0
                if should_log(previous, signature, repeats, self._downsample):
                    self.logged_failures += 1
                    logger.debug("Still waiting for the %s: %s", self.name, exc)
                previous = signature
            else:
                self._state = ReadinessState.SUCCEEDED
                return result

            remaining = deadline - self._clock()
            if remaining <= 0:
                self._state = ReadinessState.FAILED_TIMEOUT
                raise ReadinessTimeoutError(
                    self.name, self._timeout, self.last_error
                ) from self.last_error
            self._sleep(min(self._interval, remaining))


# ---------------------------------------------------------------------------
# Kubernetes API probe
# ---------------------------------------------------------------------------


class ApiVersionProbe:
    """Fetches ``<api>/version`` and returns the server's ``gitVersion``.

    Parameters
    ----------
    base_url:
        API server URL, e.g. ``https://api.sno.example.com:6443``.
    verify:
        Verify the server's TLS certificate.
    client:
        Pre-built ``httpx.Client``; one is created if not provided.
    """

    def __init__(
        self,
        base_url: str,
        *,
        verify: bool = True,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(verify=verify, timeout=timeout)

    def __call__(self) -> str:
        response = self._client.get(f"{self.base_url}/version")
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict) or "gitVersion" not in payload:
            raise ValueError(f"unexpected response from {self.base_url}/version: missing gitVersion")
        return str(payload["gitVersion"])

    def close(self) -> None:
        self._client.close()


def wait_for_api(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    interval: float = DEFAULT_INTERVAL_SECONDS,
    downsample: int = DEFAULT_LOG_DOWNSAMPLE,
    verify: bool = True,
    client: httpx.Client | None = None,
) -> str:
    """Block until the Kubernetes API at *base_url* answers; return its version."""
    until = datetime.now().astimezone() + timedelta(seconds=timeout)
    logger.info(
        "Waiting up to %s (until %s) for the Kubernetes API at %s...",
        timedelta(seconds=timeout),
        until.strftime("%I:%M%p %Z"),
        base_url,
    )
    probe = ApiVersionProbe(base_url, verify=verify, client=client)
    try:
        version = ReadinessPoller(
            probe, interval=interval, timeout=timeout, downsample=downsample
        ).wait()
    finally:
        if client is None:
            probe.close()
    logger.info("API %s up", version)
    return version
