"""Command line interface for the BankID client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Optional

import typer

from bankid_client import BankIDClient, Order, PersonalNumber, get_client, load_config
from bankid_client.errors import (
    ConfigurationError,
    InvalidPersonalNumber,
    InvalidRequest,
    ServerError,
    TransportFailure,
    UnexpectedResponse,
)
from bankid_client.launch import autostart_url, qr_code_data

app = typer.Typer(help="CLI for the BankID RP API")

ConfigOption = typer.Option(None, "--config", help="Path to a YAML config file")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """BankID client CLI entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(coro: Coroutine[Any, Any, None]) -> None:
    """Run ``coro`` and turn client errors into exit codes.

    Exit code 1 is used for rejected input or orders, 2 for transport and
    protocol problems.
    """
    try:
        asyncio.run(coro)
    except (InvalidRequest, ConfigurationError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except ServerError as exc:
        typer.secho(f"{exc.code.value}: {exc.details}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except (TransportFailure, UnexpectedResponse) as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=2)


def _client(config_path: Optional[Path]) -> BankIDClient:
    return get_client(load_config(str(config_path) if config_path else None))


async def _poll(client: BankIDClient, order: Order, interval: float) -> None:
    last_hint = None
    while True:
        outcome = await client.collect(order)
        if outcome.is_terminal:
            typer.echo(outcome.model_dump_json(by_alias=True, indent=2))
            return
        if outcome.hint_code != last_hint:
            typer.echo(f"pending: {outcome.hint_code.value}")
            last_hint = outcome.hint_code
        await asyncio.sleep(interval)


async def _start(
    operation: str,
    config_path: Optional[Path],
    wait: bool,
    interval: float,
    **arguments: Any,
) -> None:
    async with _client(config_path) as client:
        if operation == "auth":
            order = await client.start_auth(**arguments)
        else:
            order = await client.start_sign(**arguments)
        typer.echo(order.model_dump_json(by_alias=True, indent=2))

        if wait:
            typer.echo(f"autostart: {autostart_url(order)}")
            typer.echo(f"qr: {qr_code_data(order, 0)}")
            await _poll(client, order, interval)


@app.command("parse")
def parse(personal_number: str) -> None:
    """Validate a personal number and print its canonical form.

    Example:
        bankid-client parse 19871010-1234
        # Output: 198710101234
    """
    try:
        pnr = PersonalNumber.parse(personal_number)
    except InvalidPersonalNumber as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(str(pnr))


@app.command("auth")
def auth(
    ip: str = typer.Option(..., "--ip", help="IP address of the end user"),
    personal_number: Optional[str] = typer.Option(
        None, "--personal-number", "-p", help="Restrict the order to this user"
    ),
    wait: bool = typer.Option(False, help="Poll until the order is finished"),
    interval: float = typer.Option(2.0, help="Seconds between collect calls"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """
    Start an authentication order.

    Example:
        bankid-client auth --ip 127.0.0.1 --wait
    """
    _run(
        _start(
            "auth",
            config,
            wait,
            interval,
            end_user_ip=ip,
            personal_number=personal_number,
        )
    )


@app.command("sign")
def sign(
    ip: str = typer.Option(..., "--ip", help="IP address of the end user"),
    text: str = typer.Option(..., "--text", help="Text shown to and signed by the user"),
    hidden: Optional[str] = typer.Option(
        None, "--hidden", help="Data signed but not shown to the user"
    ),
    personal_number: Optional[str] = typer.Option(
        None, "--personal-number", "-p", help="Restrict the order to this user"
    ),
    wait: bool = typer.Option(False, help="Poll until the order is finished"),
    interval: float = typer.Option(2.0, help="Seconds between collect calls"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Start a sign order."""
    _run(
        _start(
            "sign",
            config,
            wait,
            interval,
            end_user_ip=ip,
            user_visible_data=text,
            user_non_visible_data=hidden,
            personal_number=personal_number,
        )
    )


@app.command("collect")
def collect(order_ref: str, config: Optional[Path] = ConfigOption) -> None:
    """Print the current status of an order."""

    async def _collect() -> None:
        async with _client(config) as client:
            outcome = await client.collect(order_ref)
            typer.echo(outcome.model_dump_json(by_alias=True, indent=2))

    _run(_collect())


@app.command("cancel")
def cancel(order_ref: str, config: Optional[Path] = ConfigOption) -> None:
    """Cancel an order."""

    async def _cancel() -> None:
        async with _client(config) as client:
            await client.cancel(order_ref)
            typer.echo(f"Cancelled {order_ref}")

    _run(_cancel())


if __name__ == "__main__":
    app()
