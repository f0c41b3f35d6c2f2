import typer

from snapi.apps.cli.commands import api, auth

app = typer.Typer(help="SNAPI mobile API client")
app.add_typer(auth.app, name="auth")
app.add_typer(api.app, name="api")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
