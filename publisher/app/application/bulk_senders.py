"""Bulk senders: feed a file or a line stream through Publisher.send, one message per line."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, TextIO

from loguru import logger

from publisher.app.core import SERVICE_NAME
from publisher.app.domain.errors import FileReadError, PublisherError
from publisher.app.domain.models import StreamReport


class LineSink(Protocol):
    def send(self, message: str) -> None: ...


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def send_file(publisher: LineSink, path: str | Path) -> int:
    """Send each non-empty line of `path` in file order; stop at the first send error.

    Returns the number of lines sent.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(f"failed to read {path}: {exc}") from exc

    sent = 0
    for line in text.split("\n"):
        if line == "":
            continue
        logger.debug(" -sending: {}", line)
        publisher.send(line)
        sent += 1
    _log("file_sent", path=str(path), lines=sent)
    return sent


def send_stream(publisher: LineSink, stream: TextIO) -> StreamReport:
    """Send lines from `stream` until end-of-input.

    Blank lines are skipped and the line terminator is stripped. A failed line
    is logged and the stream carries on with the next one.
    """
    sent = 0
    failed = 0
    for raw in iter(stream.readline, ""):
        line = raw.rstrip("\r\n")
        if line == "":
            continue
        try:
            publisher.send(line)
        except PublisherError as exc:
            failed += 1
            logger.error("Send returned error: {}", exc)
            continue
        sent += 1
        logger.info("--sent: {}", line)
    _log("stream_sent", sent=sent, failed=failed)
    return StreamReport(sent=sent, failed=failed)
