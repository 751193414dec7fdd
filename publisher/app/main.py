"""Command-line entry point: publish a message, a file, or stdin to a STOMP broker."""
from __future__ import annotations

import sys
from typing import Any

import click
from loguru import logger

from publisher.app.application.bulk_senders import send_file, send_stream
from publisher.app.composition import PublisherDependencies, create_publisher_dependencies
from publisher.app.config.settings import Settings
from publisher.app.core import CLIENT_NAME, CLIENT_VERSION, SERVICE_NAME, version_string
from publisher.app.domain.errors import PublisherError
from publisher.app.domain.models import destination_kind

STDIN_SENTINEL = "-"
RULE = "-" * 33
FORMATS = "'json','xml','csv','keyvalue','sql','unformatted','kv','csv:kv','csv:keyvalue','csv:json'"


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message} {extra}",
    )


def _fail(ctx: click.Context, message: str, deps: PublisherDependencies | None = None) -> None:
    click.echo(f"ERROR: {message}", err=True)
    if deps is not None:
        try:
            deps.close()
        except PublisherError as exc:
            logger.warning("disconnect after failure failed: {}", exc)
    ctx.exit(1)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-b", "--broker", default=None, help="fully.qualified.broker:port")
@click.option("-q", "--queue", default=None, help="queue, prepend with /topic/ for topic")
@click.option("-m", "--data", "message", default=None, help="data/message to send")
@click.option(
    "-f",
    "--file",
    "message_file",
    default=None,
    help=f"file name of data to send, '{STDIN_SENTINEL}' reads standard input",
)
@click.option(
    "-p",
    "--protocol",
    "transport_kind",
    type=click.Choice(["tcp", "ssl", "plain", "encrypted"], case_sensitive=False),
    default=None,
    help="transport to use: 'tcp' or 'ssl'",
)
@click.option("-o", "--format", "message_format", default=None, help=f"message format {FORMATS}")
@click.option("--username", default=None, help="username override")
@click.option("--password", default=None, help="password override")
@click.option("-v", "--verbose", is_flag=True, help="turn on verbose logging")
@click.option("-d", "--debug", is_flag=True, help="turn on debug logging")
@click.version_option(CLIENT_VERSION, "--version", prog_name=CLIENT_NAME, message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    broker: str | None,
    queue: str | None,
    message: str | None,
    message_file: str | None,
    transport_kind: str | None,
    message_format: str | None,
    username: str | None,
    password: str | None,
    verbose: bool,
    debug: bool,
) -> None:
    """Publish messages to a STOMP message-bus broker."""
    click.echo(version_string())

    overrides: dict[str, Any] = {
        "broker_address": broker,
        "destination": queue,
        "transport_kind": transport_kind,
        "message_format": message_format,
        "broker_user": username,
        "broker_password": password,
    }
    settings = Settings().model_copy(update={k: v for k, v in overrides.items() if v is not None})

    level = "DEBUG" if debug else "INFO" if verbose else settings.log_level
    configure_logging(level)

    if not settings.broker_address or not settings.destination:
        raise click.UsageError("Need --broker and --queue")
    if bool(message) == bool(message_file):
        raise click.UsageError("Need either --data or --file")

    deps = create_publisher_dependencies(settings)
    publisher = deps.publisher
    logger.bind(service_name=SERVICE_NAME, event="cli_start").info(
        "{} {}", destination_kind(settings.destination), settings.destination
    )

    try:
        deps.connect()
    except PublisherError as exc:
        _fail(ctx, f"Connect returned error: {exc}")
    click.echo("Connect succeeded")

    if message:
        click.echo(f"Sending message to {publisher.target_address}")
        try:
            publisher.send(message)
        except PublisherError as exc:
            _fail(ctx, f"Send returned error: {exc}", deps)
        click.echo(f'--message: "{message}"\n{RULE}')
    elif message_file == STDIN_SENTINEL:
        click.echo(f"Sending 'stdin' to {publisher.target_address}, (ctrl-D when finished)")
        with click.open_file(STDIN_SENTINEL) as stream:
            report = send_stream(publisher, stream)
        click.echo(f"\n{RULE}")
        click.echo(f"--sent: {report.sent}, failed: {report.failed}")
    else:
        click.echo(f"Sending file {message_file} to {publisher.target_address}")
        try:
            send_file(publisher, message_file)
        except PublisherError as exc:
            _fail(ctx, f"SendFile returned error: {exc}", deps)

    try:
        disconnected = deps.close()
    except PublisherError as exc:
        _fail(ctx, f"Disconnect returned error: {exc}")
    if not disconnected:
        _fail(ctx, f"Disconnect skipped: connection to {publisher.target_address} was lost")
    click.echo("Disconnect succeeded")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
