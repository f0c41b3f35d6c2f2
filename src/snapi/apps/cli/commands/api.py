"""Raw and typed calls against the SNAPI backend."""

from __future__ import annotations

import json

import typer

from snapi.apps.cli.runtime import echo_json, run
from snapi.services.api.actions import fetch_recent, set_allowed, set_blocked
from snapi.services.api.client import ApiClient
from snapi.services.phone import format_dial_number, normalize_to_e164

app = typer.Typer(help="Backend API calls")


def _number(raw: str) -> str:
    e164 = normalize_to_e164(raw)
    if not e164:
        raise typer.BadParameter(f"not a dialable US/E.164 number: {raw!r}")
    return e164


@app.command("request")
def request(
    method: str = typer.Argument(..., help="HTTP method"),
    path: str = typer.Argument(..., help="path below the base URL, e.g. /mobile/me"),
    data: str = typer.Option(None, "--data", "-d", help="JSON request body"),
    timeout: float = typer.Option(None, "--timeout", help="per-attempt timeout in seconds"),
):
    """Send an arbitrary request through the session-aware client."""
    body = None
    if data is not None:
        try:
            body = json.loads(data)
        except ValueError as exc:
            raise typer.BadParameter(f"--data is not valid JSON: {exc}") from exc

    async def _request(client: ApiClient):
        await client.hydrate()
        return await client.request(path, method=method, body=body, timeout=timeout)

    echo_json(run(_request))


@app.command("block")
def block(
    number: str = typer.Argument(..., help="caller number"),
    off: bool = typer.Option(False, "--off", help="unblock instead"),
):
    e164 = _number(number)

    async def _block(client: ApiClient):
        await client.hydrate()
        return await set_blocked(client, e164, not off)

    echo_json(run(_block))


@app.command("allow")
def allow(
    number: str = typer.Argument(..., help="caller number"),
    off: bool = typer.Option(False, "--off", help="remove from the allowlist"),
):
    e164 = _number(number)

    async def _allow(client: ApiClient):
        await client.hydrate()
        return await set_allowed(client, e164, not off)

    echo_json(run(_allow))


@app.command("recent")
def recent(limit: int = typer.Option(50, "--limit", min=1, max=500)):
    """List recent screened calls."""

    async def _recent(client: ApiClient):
        await client.hydrate()
        return await fetch_recent(client, limit=limit)

    for call in run(_recent):
        flag = "blocked" if call.is_blocked else (call.action or call.status or "-")
        typer.echo(f"{call.ts}\t{format_dial_number(call.from_) or call.from_}\t{flag}")
