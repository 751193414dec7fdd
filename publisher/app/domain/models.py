"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass

from publisher.app.constants import TOPIC_PREFIX
from publisher.app.domain.errors import TransportError


@dataclass(frozen=True)
class Credentials:
    """Broker login; passcode is sent alongside login even when empty."""

    login: str
    passcode: str = ""


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for the send retry loop.

    The first attempt runs at once. Each later attempt first sleeps the previous
    delay times `backoff_multiplier`, capped at `max_backoff_seconds`, so the
    first wait is `initial_backoff_seconds * backoff_multiplier` (1.0s with the
    defaults) and `initial_backoff_seconds` itself is never slept.
    """

    max_attempts: int = 3
    initial_backoff_seconds: float = 0.5
    max_backoff_seconds: float = 10.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("retry_policy.max_attempts must be >= 1")


@dataclass(frozen=True)
class StreamReport:
    """Outcome of a stream-mode run."""

    sent: int = 0
    failed: int = 0


class RecentMessages:
    """Two-slot ring: index 0 is the newest attempt, index 1 the one before it."""

    def __init__(self) -> None:
        self._slots: list[str] = ["", ""]

    def push(self, message: str) -> None:
        self._slots[1] = self._slots[0]
        self._slots[0] = message

    @property
    def newest(self) -> str:
        return self._slots[0]

    @property
    def previous(self) -> str:
        return self._slots[1]

    def __getitem__(self, index: int) -> str:
        return self._slots[index]

    def __len__(self) -> int:
        return len(self._slots)


def destination_kind(destination: str) -> str:
    """'topic' for names carrying the topic prefix, otherwise 'queue'."""
    return "topic" if destination.startswith(TOPIC_PREFIX) else "queue"


def parse_address(address: str) -> tuple[str, int]:
    """Split a 'host:port' broker address; raises TransportError when malformed."""
    host, sep, port = str(address).strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise TransportError(f"invalid broker address {address!r}, expected host:port")
    return host.strip("[]"), int(port)
