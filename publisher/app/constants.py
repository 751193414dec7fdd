"""Publisher-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

STOMP_ACCEPT_VERSION = "1.1"
TOPIC_PREFIX = "/topic/"
UNKNOWN_HOSTNAME = "unknown"


class TransportKind(str, Enum):
    PLAIN = "plain"
    ENCRYPTED = "encrypted"


# CLI spellings carried over from the tcp/ssl naming.
TRANSPORT_ALIASES: dict[str, TransportKind] = {
    "plain": TransportKind.PLAIN,
    "tcp": TransportKind.PLAIN,
    "encrypted": TransportKind.ENCRYPTED,
    "ssl": TransportKind.ENCRYPTED,
}


class MessageProtocol(str, Enum):
    STOMP = "stomp"


class ResendPolicy(str, Enum):
    FAILED = "failed"
    PREVIOUS = "previous"


class HEADER:
    HOST = "host"
    ACCEPT_VERSION = "accept-version"
    LOGIN = "login"
    PASSCODE = "passcode"
    DESTINATION = "destination"
    USERNAME = "username"
    VERSION = "version"
    FORMAT = "format"
    PERSISTENT = "persistent"
    PRIORITY = "priority"
    HOSTNAME = "hostname"


class PublisherState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RECONNECTING = "RECONNECTING"
    CLOSING = "CLOSING"
