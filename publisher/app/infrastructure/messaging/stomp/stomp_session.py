"""
STOMP 1.1 messaging session over an open stomp.py transport.

stomp.protocol.Protocol11 encodes the frames; this adapter only maps header
dicts onto its calls and stomp.py failures onto SessionError. The CONNECTED
wait is bounded by `connect_timeout_seconds`.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Mapping

import stomp.exception
import stomp.protocol

from publisher.app.constants import HEADER
from publisher.app.domain.errors import SessionError

_CREDENTIAL_HEADERS = (HEADER.LOGIN, HEADER.PASSCODE)
_POLL_INTERVAL_SECONDS = 0.05


def _wait_for_connected(
    stream: Any,
    timeout_seconds: float,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    deadline = clock() + timeout_seconds
    while not stream.is_connected():
        if stream.connection_error:
            raise SessionError("STOMP connect failed: broker answered CONNECT with ERROR")
        if not stream.running:
            raise SessionError("STOMP connect failed: connection closed before CONNECTED")
        remaining = deadline - clock()
        if remaining <= 0:
            raise SessionError(f"STOMP connect failed: no CONNECTED frame within {timeout_seconds}s")
        sleep(min(_POLL_INTERVAL_SECONDS, remaining))


class StompSession:
    """MessagingSession implementation"""

    def __init__(self, protocol: stomp.protocol.Protocol11) -> None:
        self._protocol = protocol

    @classmethod
    def open(
        cls,
        stream: Any,
        headers: Mapping[str, str],
        *,
        connect_timeout_seconds: float = 10.0,
    ) -> "StompSession":
        protocol = stomp.protocol.Protocol11(stream)
        connect_headers = {k: v for k, v in headers.items() if k not in _CREDENTIAL_HEADERS}
        try:
            protocol.connect(
                username=headers.get(HEADER.LOGIN),
                passcode=headers.get(HEADER.PASSCODE),
                wait=False,
                headers=connect_headers,
            )
            _wait_for_connected(stream, connect_timeout_seconds)
        except (stomp.exception.StompException, OSError) as exc:
            raise SessionError(f"STOMP connect failed: {exc!r}") from exc
        return cls(protocol)

    def send(self, headers: Mapping[str, str], body: str) -> None:
        destination = headers.get(HEADER.DESTINATION)
        if not destination:
            raise SessionError("send attempt without a destination header")
        extra = {k: v for k, v in headers.items() if k != HEADER.DESTINATION}
        try:
            self._protocol.send(destination, body, headers=extra)
        except (stomp.exception.StompException, OSError) as exc:
            raise SessionError(f"STOMP send to {destination} failed: {exc!r}") from exc

    def disconnect(self, headers: Mapping[str, str]) -> None:
        try:
            self._protocol.disconnect(headers=dict(headers))
        except (stomp.exception.StompException, OSError) as exc:
            raise SessionError(f"disconnect [STOMP] failed with {exc!r}") from exc
