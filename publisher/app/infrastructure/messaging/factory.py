"""Session factory: selects implementation from config. Only place that imports concrete sessions."""
from __future__ import annotations

from typing import Any, Mapping

from publisher.app.config.settings import Settings
from publisher.app.ports.messaging_session import MessagingSession, SessionFactory
from publisher.app.infrastructure.messaging.inmemory.in_memory_session import InMemorySession
from publisher.app.infrastructure.messaging.stomp.stomp_session import StompSession


def create_session_factory(settings: Settings) -> SessionFactory:
    backend = settings.session_backend.strip().lower()

    if backend == "stomp":
        def _stomp_session(stream: Any, headers: Mapping[str, str]) -> MessagingSession:
            return StompSession.open(
                stream,
                headers,
                connect_timeout_seconds=settings.connect_timeout_seconds,
            )

        return _stomp_session

    if backend == "inmemory":
        return InMemorySession.open

    raise ValueError(f"Unsupported session backend: {backend}")
