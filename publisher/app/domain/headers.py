"""Header construction for the STOMP connect and send frames.

Both header sets are plain dicts: insertion order is the wire order and a
repeated key replaces the earlier value.
"""
from __future__ import annotations

import socket
from typing import Callable

from loguru import logger

from publisher.app.constants import HEADER, STOMP_ACCEPT_VERSION, UNKNOWN_HOSTNAME
from publisher.app.domain.models import Credentials

HostnameResolver = Callable[[], str]


def resolve_hostname() -> str:
    try:
        hostname = socket.gethostname()
    except OSError as exc:
        logger.warning("hostname lookup failed: {}", exc)
        return UNKNOWN_HOSTNAME
    return hostname or UNKNOWN_HOSTNAME


def build_connection_headers(address: str, credentials: Credentials | None = None) -> dict[str, str]:
    headers = {
        HEADER.HOST: address,
        HEADER.ACCEPT_VERSION: STOMP_ACCEPT_VERSION,
    }
    if credentials is not None and credentials.login:
        headers[HEADER.LOGIN] = credentials.login
        headers[HEADER.PASSCODE] = credentials.passcode
    return headers


def build_publish_headers(
    destination: str,
    sender_identity: str,
    client_name: str,
    client_version: str,
    message_format: str,
    *,
    hostname_resolver: HostnameResolver = resolve_hostname,
) -> dict[str, str]:
    try:
        hostname = hostname_resolver() or UNKNOWN_HOSTNAME
    except OSError:
        hostname = UNKNOWN_HOSTNAME
    return {
        HEADER.DESTINATION: destination,
        HEADER.USERNAME: sender_identity,
        HEADER.VERSION: f"{client_name} {client_version}",
        HEADER.FORMAT: message_format,
        HEADER.PERSISTENT: "true",
        HEADER.PRIORITY: "5",
        HEADER.HOSTNAME: hostname,
    }
