"""Port: messaging-protocol session over an open transport. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Any, Mapping, Protocol


class MessagingSession(Protocol):
    """Interface for an established session; methods raise SessionError."""

    def send(self, headers: Mapping[str, str], body: str) -> None: ...

    def disconnect(self, headers: Mapping[str, str]) -> None: ...


class SessionFactory(Protocol):
    def __call__(self, stream: Any, headers: Mapping[str, str]) -> MessagingSession:
        """Negotiate a session over `stream` with the connect headers; raises SessionError."""
        ...
