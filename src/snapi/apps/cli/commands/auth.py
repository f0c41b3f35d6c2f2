"""Session lifecycle commands."""

from __future__ import annotations

import typer

from snapi.apps.cli.runtime import echo_json, run
from snapi.services.api.client import ApiClient
from snapi.services.logging import mask_secret

app = typer.Typer(help="Session and device identity")


@app.command("status")
def status():
    """Show the hydrated session state."""

    async def _status(client: ApiClient):
        return await client.hydrate()

    session = run(_status)
    data = session.as_dict()
    data["access_token"] = mask_secret(session.access_token)
    echo_json(data)


@app.command("login")
def login(
    access_token: str = typer.Argument(..., help="access token issued by the backend"),
    refresh_token: str = typer.Argument(..., help="refresh token issued by the backend"),
):
    """Store a token pair obtained from the sign-in flow."""

    async def _login(client: ApiClient):
        await client.set_tokens(access_token, refresh_token)
        return client.get_session()

    session = run(_login)
    typer.echo("signed in" if session.is_authed else "tokens stored, session incomplete")


@app.command("logout")
def logout():
    """Forget both tokens."""

    async def _logout(client: ApiClient):
        await client.clear_tokens()

    run(_logout)
    typer.echo("signed out")


@app.command("refresh")
def refresh():
    """Exchange the stored refresh token for a new access token."""

    async def _refresh(client: ApiClient):
        await client.hydrate()
        return await client.refresh_session()

    ok = run(_refresh)
    if not ok:
        typer.secho("refresh failed", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    typer.echo("refreshed")


@app.command("device-id")
def device_id():
    """Print the persisted device identifier."""

    async def _device(client: ApiClient):
        return await client.get_device_id()

    typer.echo(run(_device))
