"""In-memory messaging session for testing and local mode.
Writes frames onto the InMemoryTransport it was opened on instead of a socket.
"""
from __future__ import annotations

from typing import Any, Mapping


class InMemorySession:
    def __init__(self, stream: Any) -> None:
        self._stream = stream

    @classmethod
    def open(cls, stream: Any, headers: Mapping[str, str]) -> "InMemorySession":
        session = cls(stream)
        session._write("CONNECT", headers, "")
        return session

    def send(self, headers: Mapping[str, str], body: str) -> None:
        self._write("SEND", headers, body)

    def disconnect(self, headers: Mapping[str, str]) -> None:
        self._write("DISCONNECT", headers, "")

    def _write(self, command: str, headers: Mapping[str, str], body: str) -> None:
        self._stream.frames.append((command, dict(headers), body))
