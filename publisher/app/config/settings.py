"""Settings for the publisher."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    broker_address: str = Field("", validation_alias="BROKER_ADDRESS")
    transport_kind: str = Field("plain", validation_alias="TRANSPORT_KIND")
    message_protocol: str = Field("STOMP", validation_alias="MESSAGE_PROTOCOL")
    broker_user: str = Field("", validation_alias="BROKER_USER")
    broker_password: str = Field("", validation_alias="BROKER_PASSWORD")

    destination: str = Field("", validation_alias="DESTINATION")
    sender_identity: str = Field("me", validation_alias="SENDER_IDENTITY")
    client_name: str = Field("publisher", validation_alias="CLIENT_NAME")
    client_version: str = Field("1.0.0", validation_alias="CLIENT_VERSION")
    message_format: str = Field("default", validation_alias="MESSAGE_FORMAT")

    # Total send attempts per message, the first try included.
    max_send_attempts: int = Field(3, ge=1, validation_alias="MAX_SEND_ATTEMPTS")
    initial_backoff_seconds: float = Field(0.5, ge=0, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(10.0, ge=0, validation_alias="MAX_BACKOFF_SECONDS")
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")
    resend_policy: str = Field("failed", validation_alias="RESEND_POLICY")

    connect_timeout_seconds: float = Field(10.0, validation_alias="CONNECT_TIMEOUT_SECONDS")
    ssl_ca_certs: str | None = Field(None, validation_alias="SSL_CA_CERTS")
    ssl_cert_file: str | None = Field(None, validation_alias="SSL_CERT_FILE")
    ssl_key_file: str | None = Field(None, validation_alias="SSL_KEY_FILE")

    session_backend: str = Field("stomp", validation_alias="SESSION_BACKEND")
    log_level: str = Field("WARNING", validation_alias="LOG_LEVEL")
