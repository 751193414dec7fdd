"""In-memory transport for testing and local mode. Frames written by the
in-memory session are kept on the transport so a run can be inspected."""
from __future__ import annotations

from typing import Any

from publisher.app.constants import TransportKind
from publisher.app.domain.models import parse_address


class InMemoryTransport:
    def __init__(self, kind: TransportKind | str, address: str) -> None:
        self.kind = TransportKind(kind)
        self.address = address
        self.host, self.port = parse_address(address)
        self.frames: list[tuple[str, dict[str, str], str]] = []
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def stream(self) -> Any:
        return self

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False
