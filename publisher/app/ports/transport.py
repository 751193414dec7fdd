"""Port: byte-stream transport to the broker. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Any, Callable, Protocol


class Transport(Protocol):
    """Interface for the transport lifecycle.

    open() and close() raise TransportError; `stream` is the handle a
    messaging session is layered on.
    """

    @property
    def is_open(self) -> bool: ...

    @property
    def stream(self) -> Any: ...

    def open(self) -> None: ...

    def close(self) -> None: ...


TransportFactory = Callable[[str, str], Transport]
"""Builds an unopened transport from (transport_kind, address)."""
