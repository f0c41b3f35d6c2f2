"""Shared plumbing for CLI commands: client construction and error output."""
from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, TypeVar

import anyio
import typer

from snapi.services.api.client import ApiClient
from snapi.services.api.errors import ApiError
from snapi.services.logging import setup_logging
from snapi.services.settings import ClientSettings

T = TypeVar("T")

# tests swap this for a factory that injects a fake store / transport
client_factory: Callable[[ClientSettings], ApiClient] = ApiClient


def run(func: Callable[[ApiClient], Awaitable[T]]) -> T:
    settings = ClientSettings.load()
    setup_logging(settings.log_level)

    async def _main() -> T:
        async with client_factory(settings) as client:
            return await func(client)

    try:
        return anyio.run(_main)
    except ApiError as exc:
        detail = exc.code.value if exc.code else f"HTTP {exc.status}"
        typer.secho(f"error [{detail}]: {exc.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))
