"""
Composition root: single place where concrete implementations are wired.

Builds the publisher from settings and provides the connect/close lifecycle
the CLI drives. Backend selection (session_backend=stomp|inmemory) is driven
by settings through the infrastructure factories.
"""
from __future__ import annotations

from publisher.app.application.publisher import Publisher
from publisher.app.config.settings import Settings
from publisher.app.domain.headers import HostnameResolver, resolve_hostname
from publisher.app.domain.models import Credentials, RetryPolicy
from publisher.app.infrastructure.messaging.factory import create_session_factory
from publisher.app.infrastructure.transport.factory import create_transport_factory


class PublisherDependencies:
    """Holds the wired publisher and the settings it was built from."""

    def __init__(self, *, settings: Settings, publisher: Publisher) -> None:
        self._settings = settings
        self._publisher = publisher

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def publisher(self) -> Publisher:
        return self._publisher

    def credentials(self) -> Credentials | None:
        if not self._settings.broker_user:
            return None
        return Credentials(self._settings.broker_user, self._settings.broker_password)

    def connect(self) -> None:
        """Set the publish headers for this run, then connect to the configured broker."""
        s = self._settings
        self._publisher.set_publish_headers(
            s.destination,
            s.sender_identity,
            s.client_name,
            s.client_version,
            s.message_format,
        )
        self._publisher.connect(
            s.transport_kind,
            s.message_protocol,
            s.broker_address,
            self.credentials(),
        )

    def close(self) -> bool:
        """Disconnect if connected; returns whether a disconnect ran."""
        if not self._publisher.connected:
            return False
        self._publisher.disconnect()
        return True


def create_publisher(
    settings: Settings,
    *,
    hostname_resolver: HostnameResolver = resolve_hostname,
) -> Publisher:
    retry_policy = RetryPolicy(
        max_attempts=settings.max_send_attempts,
        initial_backoff_seconds=settings.initial_backoff_seconds,
        max_backoff_seconds=settings.max_backoff_seconds,
        backoff_multiplier=settings.backoff_multiplier,
    )
    return Publisher(
        create_transport_factory(settings),
        create_session_factory(settings),
        retry_policy=retry_policy,
        resend_policy=settings.resend_policy,
        hostname_resolver=hostname_resolver,
    )


def create_publisher_dependencies(settings: Settings | None = None) -> PublisherDependencies:
    _settings = settings or Settings()
    return PublisherDependencies(settings=_settings, publisher=create_publisher(_settings))
