"""Transport factory: selects implementation from config. Only place that imports concrete transports."""
from __future__ import annotations

from publisher.app.config.settings import Settings
from publisher.app.ports.transport import Transport, TransportFactory
from publisher.app.infrastructure.transport.in_memory_transport import InMemoryTransport
from publisher.app.infrastructure.transport.stomp_transport import StompTransport


def create_transport_factory(settings: Settings) -> TransportFactory:
    backend = settings.session_backend.strip().lower()

    if backend == "stomp":
        def _stomp_transport(kind: str, address: str) -> Transport:
            return StompTransport(
                kind,
                address,
                connect_timeout_seconds=settings.connect_timeout_seconds,
                ssl_ca_certs=settings.ssl_ca_certs,
                ssl_cert_file=settings.ssl_cert_file,
                ssl_key_file=settings.ssl_key_file,
            )

        return _stomp_transport

    if backend == "inmemory":
        return InMemoryTransport

    raise ValueError(f"Unsupported session backend: {backend}")
