"""Unit tests for the stomp.py-backed transport and session adapters."""
from __future__ import annotations

import pytest
import stomp.exception
import stomp.protocol
import stomp.transport

from publisher.app.domain.errors import SessionError, TransportError
from publisher.app.infrastructure.messaging.stomp.stomp_session import StompSession, _wait_for_connected
from publisher.app.infrastructure.transport.stomp_transport import StompTransport


class _FakeWire:
    """Stands in for stomp.transport.Transport: socket state plus the STOMP CONNECTED flag."""

    instances: list["_FakeWire"] = []
    start_raises: Exception | None = None

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.ssl: dict | None = None
        self.started = False
        self.stopped = False
        self.socket_open = False
        self.running = False
        self.connected = False
        self.connection_error = False
        self.answers_connect = True
        self.calls: list[str] = []
        _FakeWire.instances.append(self)

    def is_connected(self) -> bool:
        return self.socket_open and self.connected

    def set_ssl(self, **kwargs) -> None:
        self.ssl = kwargs

    def start(self) -> None:
        if _FakeWire.start_raises is not None:
            raise _FakeWire.start_raises
        self.started = True
        self.socket_open = True
        self.running = True

    def disconnect_socket(self) -> None:
        self.calls.append("disconnect_socket")
        self.running = False
        self.socket_open = False

    def stop(self) -> None:
        self.calls.append("stop")
        self.stopped = True


class _FakeProtocol:
    connect_raises: Exception | None = None
    send_raises: Exception | None = None

    def __init__(self, transport) -> None:
        self.transport = transport
        self.connect_kwargs: dict | None = None
        self.sent: list[tuple[str, str, dict]] = []
        self.disconnect_headers: dict | None = None

    def connect(self, **kwargs) -> None:
        if _FakeProtocol.connect_raises is not None:
            raise _FakeProtocol.connect_raises
        self.connect_kwargs = kwargs
        if isinstance(self.transport, _FakeWire):
            self.transport.connected = self.transport.answers_connect

    def send(self, destination, body, headers=None) -> None:
        if _FakeProtocol.send_raises is not None:
            raise _FakeProtocol.send_raises
        self.sent.append((destination, body, headers))

    def disconnect(self, headers=None) -> None:
        self.disconnect_headers = headers


@pytest.fixture(autouse=True)
def _fake_stomp(monkeypatch):
    _FakeWire.instances = []
    _FakeWire.start_raises = None
    _FakeProtocol.connect_raises = None
    _FakeProtocol.send_raises = None
    monkeypatch.setattr(stomp.transport, "Transport", _FakeWire)
    monkeypatch.setattr(stomp.protocol, "Protocol11", _FakeProtocol)


def test_plain_transport_opens_single_host_without_ssl():
    transport = StompTransport("plain", "mq.example.com:61613", connect_timeout_seconds=5.0)
    transport.open()

    wire = _FakeWire.instances[0]
    assert wire.started is True
    assert wire.ssl is None
    assert wire.kwargs["host_and_ports"] == [("mq.example.com", 61613)]
    assert wire.kwargs["reconnect_attempts_max"] == 1
    assert wire.kwargs["timeout"] == 5.0
    assert transport.is_open is True
    assert transport.stream is wire


def test_encrypted_transport_enables_ssl():
    transport = StompTransport("encrypted", "mq.example.com:61614", ssl_ca_certs="/etc/ca.pem")
    transport.open()

    wire = _FakeWire.instances[0]
    assert wire.ssl["for_hosts"] == [("mq.example.com", 61614)]
    assert wire.ssl["ca_certs"] == "/etc/ca.pem"


def test_transport_connect_failure_maps_to_transport_error():
    _FakeWire.start_raises = stomp.exception.ConnectFailedException()
    transport = StompTransport("plain", "mq.example.com:61613")

    with pytest.raises(TransportError, match="mq.example.com:61613"):
        transport.open()
    assert transport.is_open is False


def test_transport_close_stops_wire():
    transport = StompTransport("plain", "mq.example.com:61613")
    transport.open()
    transport.close()

    assert _FakeWire.instances[0].stopped is True
    assert transport.is_open is False
    with pytest.raises(TransportError):
        transport.stream


def test_session_passes_credentials_separately():
    headers = {"host": "mq:61613", "accept-version": "1.1", "login": "svc", "passcode": "pw"}
    wire = _started_wire()
    session = StompSession.open(wire, headers)

    protocol = session._protocol
    assert protocol.transport is wire
    assert protocol.connect_kwargs == {
        "username": "svc",
        "passcode": "pw",
        "wait": False,
        "headers": {"host": "mq:61613", "accept-version": "1.1"},
    }


def test_session_connect_failure_maps_to_session_error():
    _FakeProtocol.connect_raises = stomp.exception.ConnectFailedException()
    with pytest.raises(SessionError, match="STOMP connect failed"):
        StompSession.open(_started_wire(), {"host": "mq:61613", "accept-version": "1.1"})


def test_session_send_splits_destination_from_headers():
    session = StompSession.open(_started_wire(), {"host": "mq:61613"})
    session.send({"destination": "/topic/NEWS", "format": "json", "priority": "5"}, "hello")

    assert session._protocol.sent == [("/topic/NEWS", "hello", {"format": "json", "priority": "5"})]


def test_session_send_failure_maps_to_session_error():
    session = StompSession.open(_started_wire(), {"host": "mq:61613"})
    _FakeProtocol.send_raises = stomp.exception.NotConnectedException()

    with pytest.raises(SessionError, match="/queue/A"):
        session.send({"destination": "/queue/A"}, "hello")


def test_session_send_without_destination_is_rejected():
    session = StompSession.open(_started_wire(), {"host": "mq:61613"})
    with pytest.raises(SessionError, match="destination"):
        session.send({"format": "json"}, "hello")


def test_session_disconnect_sends_connection_headers():
    session = StompSession.open(_started_wire(), {"host": "mq:61613"})
    session.disconnect({"host": "mq:61613", "accept-version": "1.1"})

    assert session._protocol.disconnect_headers == {"host": "mq:61613", "accept-version": "1.1"}


def _started_wire() -> _FakeWire:
    wire = _FakeWire()
    wire.start()
    return wire


def test_transport_close_shuts_socket_before_stopping():
    transport = StompTransport("plain", "mq.example.com:61613")
    transport.open()
    wire = _FakeWire.instances[0]
    transport.close()

    assert wire.calls == ["disconnect_socket", "stop"]
    assert wire.socket_open is False


def test_transport_close_shuts_socket_when_stomp_never_connected():
    transport = StompTransport("plain", "mq.example.com:61613")
    transport.open()
    wire = _FakeWire.instances[0]
    wire.answers_connect = False

    with pytest.raises(SessionError):
        StompSession.open(wire, {"host": "mq:61613"}, connect_timeout_seconds=0.0)
    transport.close()

    assert wire.is_connected() is False
    assert wire.socket_open is False
    assert wire.running is False


def test_transport_close_failure_maps_to_transport_error(monkeypatch):
    transport = StompTransport("plain", "mq.example.com:61613")
    transport.open()

    def _boom() -> None:
        raise OSError("bad file descriptor")

    monkeypatch.setattr(_FakeWire.instances[0], "disconnect_socket", _boom)
    with pytest.raises(TransportError, match="close"):
        transport.close()
    assert transport.is_open is False


def test_session_connect_times_out_when_broker_stays_silent():
    wire = _started_wire()
    wire.answers_connect = False

    with pytest.raises(SessionError, match="no CONNECTED frame"):
        StompSession.open(wire, {"host": "mq:61613"}, connect_timeout_seconds=0.0)


def test_session_connect_does_not_block_inside_stomp_py():
    wire = _started_wire()
    session = StompSession.open(wire, {"host": "mq:61613"})
    assert session._protocol.connect_kwargs["wait"] is False


def test_wait_for_connected_polls_until_deadline():
    wire = _started_wire()
    now = [100.0]
    naps: list[float] = []

    def _sleep(seconds: float) -> None:
        naps.append(seconds)
        now[0] += 0.05

    with pytest.raises(SessionError, match="within 0.12s"):
        _wait_for_connected(wire, 0.12, clock=lambda: now[0], sleep=_sleep)

    assert naps == pytest.approx([0.05, 0.05, 0.02])


def test_wait_for_connected_returns_once_connected():
    wire = _started_wire()
    naps: list[float] = []

    def _sleep(seconds: float) -> None:
        naps.append(seconds)
        wire.connected = True

    _wait_for_connected(wire, 5.0, sleep=_sleep)
    assert naps == [0.05]


def test_wait_for_connected_stops_on_error_frame():
    wire = _started_wire()
    wire.connection_error = True

    with pytest.raises(SessionError, match="ERROR"):
        _wait_for_connected(wire, 5.0)


def test_wait_for_connected_stops_when_socket_drops():
    wire = _started_wire()
    wire.disconnect_socket()

    with pytest.raises(SessionError, match="connection closed"):
        _wait_for_connected(wire, 5.0)
