"""Shared identifiers for the publisher service."""
SERVICE_NAME = "publisher"
CLIENT_NAME = "publisher"
CLIENT_VERSION = "1.0.0"


def version_string() -> str:
    return f"{CLIENT_NAME} {CLIENT_VERSION}"
