"""
Publisher: connection lifecycle and send-with-retry over a messaging session.

Lifecycle:
  DISCONNECTED -> CONNECTING -> CONNECTED.
  On send failure: CONNECTED -> RECONNECTING (disconnect, backoff, connect, resend) -> CONNECTED,
  bounded by RetryPolicy.max_attempts. A failed reconnect leaves DISCONNECTED.
  On disconnect(): CONNECTED -> CLOSING -> DISCONNECTED.

Retry payload:
  The message resent after a reconnect is chosen by ResendPolicy. FAILED resends the
  message that failed and returns once it is delivered. PREVIOUS resends the slot
  before it (the historical behaviour), then sends the current message again.
"""
from __future__ import annotations

import time
from typing import Any, Callable

from loguru import logger

from publisher.app.constants import (
    HEADER,
    TRANSPORT_ALIASES,
    MessageProtocol,
    PublisherState,
    ResendPolicy,
    TransportKind,
)
from publisher.app.core import SERVICE_NAME
from publisher.app.core.backoff import exponential_backoff
from publisher.app.domain.errors import (
    PreconditionError,
    PublisherError,
    SessionError,
    TransportError,
    UnsupportedProtocolError,
)
from publisher.app.domain.headers import (
    HostnameResolver,
    build_connection_headers,
    build_publish_headers,
    resolve_hostname,
)
from publisher.app.domain.models import Credentials, RecentMessages, RetryPolicy, parse_address
from publisher.app.ports.messaging_session import MessagingSession, SessionFactory
from publisher.app.ports.transport import Transport, TransportFactory


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _normalize_transport_kind(transport_kind: str) -> TransportKind:
    kind = TRANSPORT_ALIASES.get(str(transport_kind).strip().lower())
    if kind is None:
        raise TransportError(f"transport protocol [{transport_kind}]: not supported")
    return kind


def _redact(headers: dict[str, str]) -> dict[str, str]:
    return {k: ("***" if k == HEADER.PASSCODE else v) for k, v in headers.items()}


class Publisher:
    """Owns one transport and one messaging session for the lifetime of a publishing run."""

    def __init__(
        self,
        transport_factory: TransportFactory,
        session_factory: SessionFactory,
        *,
        retry_policy: RetryPolicy | None = None,
        resend_policy: ResendPolicy | str = ResendPolicy.FAILED,
        hostname_resolver: HostnameResolver = resolve_hostname,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport_factory = transport_factory
        self._session_factory = session_factory
        self._retry_policy = retry_policy or RetryPolicy()
        self._resend_policy = (
            resend_policy
            if isinstance(resend_policy, ResendPolicy)
            else ResendPolicy(resend_policy.strip().lower())
        )
        self._hostname_resolver = hostname_resolver
        self._sleep = sleep

        self._state = PublisherState.DISCONNECTED
        self._transport: Transport | None = None
        self._session: MessagingSession | None = None
        self._transport_kind: TransportKind | None = None
        self._protocol_kind = ""
        self._credentials: Credentials | None = None
        self._connection_headers: dict[str, str] = {}
        self._publish_headers: dict[str, str] = {}
        self._headers_ready = False
        self._recent = RecentMessages()
        self._target_address = ""

    @property
    def state(self) -> PublisherState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == PublisherState.CONNECTED

    @property
    def headers_ready(self) -> bool:
        return self._headers_ready

    @property
    def publish_headers(self) -> dict[str, str]:
        return dict(self._publish_headers)

    @property
    def connection_headers(self) -> dict[str, str]:
        return dict(self._connection_headers)

    @property
    def recent_messages(self) -> RecentMessages:
        return self._recent

    @property
    def transport_kind(self) -> TransportKind | None:
        return self._transport_kind

    @property
    def target_address(self) -> str:
        """The broker host:port being published to."""
        return self._target_address

    # -- publish headers -------------------------------------------------

    def set_publish_headers(
        self,
        destination: str,
        sender_identity: str,
        client_name: str,
        client_version: str,
        message_format: str,
    ) -> None:
        self._publish_headers.update(
            build_publish_headers(
                destination,
                sender_identity,
                client_name,
                client_version,
                message_format,
                hostname_resolver=self._hostname_resolver,
            )
        )
        self._headers_ready = True
        _log("publish_headers_set", headers=self.publish_headers)

    # -- connection lifecycle --------------------------------------------

    def connect(
        self,
        transport_kind: str,
        protocol_kind: str,
        address: str,
        credentials: Credentials | None = None,
    ) -> None:
        if self.connected:
            raise PreconditionError(f"connect attempt while connected to {self._target_address}")
        self._state = PublisherState.CONNECTING
        try:
            self._open(transport_kind, protocol_kind, address, credentials)
        except PublisherError:
            self._state = PublisherState.DISCONNECTED
            raise
        self._state = PublisherState.CONNECTED
        _log("connected", target=address, transport=self._transport_kind.value)

    def disconnect(self) -> None:
        if not self.connected:
            raise PreconditionError("disconnect attempt when not connected")
        self._state = PublisherState.CLOSING
        try:
            self._teardown()
        finally:
            self._state = PublisherState.DISCONNECTED
        _log("disconnected", target=self._target_address)

    def _open(
        self,
        transport_kind: str,
        protocol_kind: str,
        address: str,
        credentials: Credentials | None,
    ) -> None:
        kind = _normalize_transport_kind(transport_kind)
        parse_address(address)

        _log("transport_connecting", target=address, transport=kind.value)
        transport = self._transport_factory(kind.value, address)
        transport.open()
        _log("transport_connected", target=address, transport=kind.value)

        if str(protocol_kind).strip().lower() != MessageProtocol.STOMP.value:
            self._close_transport(transport)
            raise UnsupportedProtocolError(f"message protocol [{protocol_kind}]: not supported")

        headers = build_connection_headers(address, credentials)
        logger.debug("STOMP connect headers: {}", _redact(headers))
        try:
            session = self._session_factory(transport.stream, headers)
        except SessionError as exc:
            self._close_transport(transport)
            raise SessionError(
                f"failed to connect [{kind.value}][{protocol_kind}] on host: {address}: {exc}"
            ) from exc

        self._transport = transport
        self._session = session
        self._transport_kind = kind
        self._protocol_kind = protocol_kind
        self._credentials = credentials
        self._connection_headers = headers
        self._target_address = address

    def _teardown(self) -> None:
        """Close session then transport (if still open); both are always attempted, the first failure is raised."""
        session, transport = self._session, self._transport
        self._session = None
        self._transport = None
        first_error: PublisherError | None = None
        if session is not None:
            try:
                session.disconnect(self._connection_headers)
            except SessionError as exc:
                first_error = exc
        if transport is not None and transport.is_open:
            try:
                transport.close()
            except TransportError as exc:
                if first_error is None:
                    first_error = exc
                else:
                    logger.warning("transport close failed: {}", exc)
        if first_error is not None:
            raise first_error

    def _close_transport(self, transport: Transport) -> None:
        if not transport.is_open:
            return
        try:
            transport.close()
        except TransportError as exc:
            logger.warning("transport close failed: {}", exc)

    # -- send ------------------------------------------------------------

    def send(self, message: str) -> None:
        if not self._headers_ready:
            raise PreconditionError("send attempt to broker with header not set")
        if not self.connected:
            raise PreconditionError("send attempt to broker when not connected")

        policy = self._retry_policy
        last_error: PublisherError | None = None
        retrying = False
        retry_payload: str | None = None
        attempt = 0
        for delay in exponential_backoff(
            policy.initial_backoff_seconds,
            policy.max_backoff_seconds,
            policy.backoff_multiplier,
            policy.max_attempts,
            sleep=self._sleep,
        ):
            attempt += 1
            if retrying:
                _log("send_retry", attempt=attempt, delay=delay, target=self._target_address)
                try:
                    self._retry_cycle(retry_payload)
                    if self._resend_policy is ResendPolicy.FAILED:
                        return
                except PublisherError as exc:
                    last_error = exc
                    logger.warning("retry cycle failed: {}", exc)
                    if self._resend_policy is ResendPolicy.FAILED or not self.connected:
                        if attempt < policy.max_attempts:
                            self._drop_session()
                        continue

            self._recent.push(message)
            try:
                self._deliver(message)
                return
            except SessionError as exc:
                last_error = exc
                logger.warning("failed to send: {}", self._recent.previous)
                logger.warning("send error: {}", exc)

            if attempt < policy.max_attempts:
                retrying = True
                retry_payload = self._retry_payload(message)
                self._drop_session()

        _log("send_failed", attempts=attempt, target=self._target_address)
        raise SessionError(f"send failed after {attempt} attempt(s): {last_error}") from last_error

    def _retry_payload(self, message: str) -> str | None:
        if self._resend_policy is ResendPolicy.PREVIOUS:
            return self._recent.previous or None
        return message

    def _retry_cycle(self, payload: str | None) -> None:
        """Reconnect with the retained target, then resend `payload` when there is one."""
        self._reconnect()
        if payload is None:
            logger.debug("nothing cached to resend")
            return
        _log("resending", target=self._target_address)
        logger.debug("resending: {}", payload)
        self._deliver(payload)

    def _reconnect(self) -> None:
        _log("reconnect_attempt", target=self._target_address)
        self._state = PublisherState.RECONNECTING
        try:
            self._open(
                self._transport_kind.value,
                self._protocol_kind,
                self._target_address,
                self._credentials,
            )
        except PublisherError:
            self._state = PublisherState.DISCONNECTED
            raise
        self._state = PublisherState.CONNECTED
        _log("reconnected", target=self._target_address)

    def _drop_session(self) -> None:
        try:
            self._teardown()
        except PublisherError as exc:
            logger.warning("disconnect before reconnect failed: {}", exc)
        finally:
            self._state = PublisherState.RECONNECTING

    def _deliver(self, body: str) -> None:
        if self._session is None:
            raise SessionError("send attempt on a closed session")
        self._session.send(self._publish_headers, body)
