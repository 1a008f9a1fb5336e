"""CLI entrypoint for taskrelay."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import rich_click as click

from taskrelay import __version__
from taskrelay.controllers import (
    PurgeCommand,
    QueueListCommand,
    SendTaskCommand,
    TaskRelayCliController,
    TaskStateCommand,
)
from taskrelay.errors import TaskRelayError

click.rich_click.USE_MARKDOWN = True
CONTROLLER = TaskRelayCliController()

_BROKER_URL_OPTION = click.option(
    "--broker-url",
    default=None,
    help="Broker URL (memory:// or sqlite:///<path>). Defaults to TASKRELAY_BROKER_URL.",
)
_BACKEND_URL_OPTION = click.option(
    "--backend-url",
    default=None,
    help="Result backend URL. Defaults to TASKRELAY_RESULT_BACKEND_URL.",
)


@click.group()
@click.version_option(version=__version__, prog_name="taskrelay")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def taskrelay(verbose: bool) -> None:
    """Submit tasks to a broker and inspect their recorded state."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@taskrelay.command("send")
@click.argument("name")
@click.option("--routing-key", default="", help="Destination queue. Empty uses the default.")
@click.option("--uuid", "task_uuid", default="", help="Caller-supplied task UUID.")
@click.option(
    "--arg",
    "args",
    multiple=True,
    help="Positional argument as TYPE:VALUE (int, float, bool, json, str). Can be repeated.",
)
@click.option(
    "--header",
    "headers",
    multiple=True,
    help="Message header as KEY=VALUE. Can be repeated.",
)
@_BROKER_URL_OPTION
@_BACKEND_URL_OPTION
def send(  # noqa: PLR0913
    name: str,
    routing_key: str,
    task_uuid: str,
    args: tuple[str, ...],
    headers: tuple[str, ...],
    broker_url: str | None,
    backend_url: str | None,
) -> None:
    """Publish one task signature."""

    _run(
        CONTROLLER.send,
        SendTaskCommand(
            name=name,
            routing_key=routing_key,
            task_uuid=task_uuid,
            args=args,
            headers=headers,
            broker_url=broker_url,
            backend_url=backend_url,
        ),
    )


@taskrelay.command("state")
@click.argument("task_uuid")
@_BACKEND_URL_OPTION
def state(task_uuid: str, backend_url: str | None) -> None:
    """Show the recorded state of one task."""

    _run(CONTROLLER.state, TaskStateCommand(task_uuid=task_uuid, backend_url=backend_url))


@taskrelay.command("purge")
@click.option(
    "--expires-seconds",
    type=int,
    default=None,
    help="Age after which finished task states are deleted. Defaults to "
    "TASKRELAY_RESULT_EXPIRES_SECONDS.",
)
@_BACKEND_URL_OPTION
def purge(expires_seconds: int | None, backend_url: str | None) -> None:
    """Delete SUCCESS and FAILURE states older than the result expiry."""

    _run(
        CONTROLLER.purge,
        PurgeCommand(backend_url=backend_url, expires_seconds=expires_seconds),
    )


@taskrelay.command("queue")
@click.option("--routing-key", default=None, help="Queue to list. Defaults to the default key.")
@_BROKER_URL_OPTION
def queue(routing_key: str | None, broker_url: str | None) -> None:
    """List messages waiting in a durable broker."""

    _run(CONTROLLER.list_queue, QueueListCommand(routing_key=routing_key, broker_url=broker_url))


def _run(handler: Callable[[Any], list[str]], command: object) -> None:
    try:
        lines = handler(command)
    except (TaskRelayError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    taskrelay()
