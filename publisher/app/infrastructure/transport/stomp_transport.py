"""Concrete transport using stomp.py's socket transport (injected where Transport is needed)."""
from __future__ import annotations

from typing import Any

import stomp.exception
import stomp.transport
from loguru import logger

from publisher.app.constants import TransportKind
from publisher.app.domain.errors import TransportError
from publisher.app.domain.models import parse_address


class StompTransport:
    """Transport implementation over stomp.transport.Transport.

    Opens the socket (TLS for the encrypted kind) and starts the receiver
    thread; the STOMP session is negotiated separately on top of `stream`.
    """

    def __init__(
        self,
        kind: TransportKind | str,
        address: str,
        *,
        connect_timeout_seconds: float | None = None,
        ssl_ca_certs: str | None = None,
        ssl_cert_file: str | None = None,
        ssl_key_file: str | None = None,
    ) -> None:
        self._kind = TransportKind(kind)
        self._address = address
        self._host_and_port = parse_address(address)
        self._connect_timeout_seconds = connect_timeout_seconds
        self._ssl_ca_certs = ssl_ca_certs
        self._ssl_cert_file = ssl_cert_file
        self._ssl_key_file = ssl_key_file
        self._wire: stomp.transport.Transport | None = None

    @property
    def is_open(self) -> bool:
        return self._wire is not None

    @property
    def stream(self) -> Any:
        if self._wire is None:
            raise TransportError("transport_not_open")
        return self._wire

    def _build_wire(self) -> stomp.transport.Transport:
        host_and_ports = [self._host_and_port]
        wire = stomp.transport.Transport(
            host_and_ports=host_and_ports,
            prefer_localhost=False,
            try_loopback_connect=False,
            reconnect_attempts_max=1,
            timeout=self._connect_timeout_seconds,
        )
        if self._kind is TransportKind.ENCRYPTED:
            wire.set_ssl(
                for_hosts=host_and_ports,
                key_file=self._ssl_key_file,
                cert_file=self._ssl_cert_file,
                ca_certs=self._ssl_ca_certs,
            )
        return wire

    def open(self) -> None:
        if self._wire is not None:
            return
        wire = self._build_wire()
        try:
            wire.start()
        except (stomp.exception.StompException, OSError) as exc:
            raise TransportError(
                f"failed to connect to {self._address} [{self._kind.value}]: {exc!r}"
            ) from exc
        logger.debug("socket open to {}", self._address)
        self._wire = wire

    def close(self) -> None:
        """Shut the socket down, then wait for the receiver thread to exit.

        The socket is closed even when STOMP negotiation never completed.
        """
        wire, self._wire = self._wire, None
        if wire is None:
            return
        try:
            wire.disconnect_socket()
            wire.stop()
        except (stomp.exception.StompException, OSError) as exc:
            raise TransportError(f"close [{self._kind.value}] failed with {exc!r}") from exc
