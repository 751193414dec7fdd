from __future__ import annotations

from typing import Any, Mapping

import pytest

from publisher.app.application.publisher import Publisher
from publisher.app.constants import ResendPolicy
from publisher.app.domain.errors import SessionError, TransportError
from publisher.app.domain.models import RetryPolicy

BROKER = "broker.example.com:61613"


class FakeTransport:
    """Implements Transport for tests; failure knobs live on the owning FakeBroker."""

    def __init__(self, broker: "FakeBroker", kind: str, address: str) -> None:
        self._broker = broker
        self.kind = kind
        self.address = address
        self.opened = False
        self.closed = False
        self.close_calls = 0

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    @property
    def stream(self) -> Any:
        return self

    def open(self) -> None:
        if self._broker.unreachable:
            raise TransportError(f"dial {self.address}: connection refused")
        self.opened = True

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        if self._broker.fail_close:
            raise TransportError("close: bad file descriptor")


class FakeSession:
    """Implements MessagingSession for tests."""

    def __init__(self, broker: "FakeBroker", headers: Mapping[str, str]) -> None:
        self._broker = broker
        self.connect_headers = dict(headers)
        self.disconnect_headers: dict[str, str] | None = None

    def send(self, headers: Mapping[str, str], body: str) -> None:
        self._broker.attempted.append(body)
        if self._broker.fail_sends:
            if self._broker.fail_sends > 0:
                self._broker.fail_sends -= 1
            raise SessionError("broken pipe")
        self._broker.sent.append((dict(headers), body))

    def disconnect(self, headers: Mapping[str, str]) -> None:
        self.disconnect_headers = dict(headers)
        self._broker.disconnects += 1
        if self._broker.fail_disconnect:
            raise SessionError("disconnect frame rejected")


class FakeBroker:
    """Hands out FakeTransport/FakeSession and records everything sent through them.

    fail_sends counts down failing sends; -1 fails every send.
    """

    def __init__(self) -> None:
        self.unreachable = False
        self.refuse_session = False
        self.fail_sends = 0
        self.fail_disconnect = False
        self.fail_close = False
        self.transports: list[FakeTransport] = []
        self.sessions: list[FakeSession] = []
        self.attempted: list[str] = []
        self.sent: list[tuple[dict[str, str], str]] = []
        self.disconnects = 0

    def transport_factory(self, kind: str, address: str) -> FakeTransport:
        transport = FakeTransport(self, kind, address)
        self.transports.append(transport)
        return transport

    def session_factory(self, stream: Any, headers: Mapping[str, str]) -> FakeSession:
        if self.refuse_session:
            raise SessionError("ERROR frame: access refused")
        session = FakeSession(self, headers)
        self.sessions.append(session)
        return session

    @property
    def sent_bodies(self) -> list[str]:
        return [body for _, body in self.sent]


@pytest.fixture()
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def make_publisher(broker: FakeBroker, sleeps: list[float]):
    def _make(
        *,
        max_attempts: int = 3,
        resend_policy: ResendPolicy | str = ResendPolicy.FAILED,
        hostname: str = "pub-host",
    ) -> Publisher:
        return Publisher(
            broker.transport_factory,
            broker.session_factory,
            retry_policy=RetryPolicy(
                max_attempts=max_attempts,
                initial_backoff_seconds=0.0,
                max_backoff_seconds=0.0,
            ),
            resend_policy=resend_policy,
            hostname_resolver=lambda: hostname,
            sleep=sleeps.append,
        )

    return _make


@pytest.fixture()
def ready_publisher(make_publisher) -> Publisher:
    pub = make_publisher()
    pub.set_publish_headers("/queue/TEST", "me", "publisher", "1.0.0", "json")
    pub.connect("plain", "STOMP", BROKER)
    return pub
