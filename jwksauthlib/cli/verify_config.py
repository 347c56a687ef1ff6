"""
jwksauth-verify-config: checks the verification settings and the key-set endpoint.

Reads the JWKS_AUTH_* environment variables, fetches the key set once and
prints either the effective settings or the list of problems found.
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from jwksauthlib.auth.bearer_token_authenticator import BearerTokenAuthenticator
from jwksauthlib.auth.models.configuration_report import ConfigurationReport
from jwksauthlib.container.container_factory import ContainerFactory

app = typer.Typer(add_completion=False)
console = Console()


def _print_report(report: ConfigurationReport) -> None:
    if report.configured:
        console.print("[green]JWKS verification configuration is valid[/green]")
    else:
        console.print("[red]JWKS verification configuration has issues:[/red]")
        for issue in report.issues:
            console.print(f"  - {issue}")

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")
    for name, value in report.settings.items():
        table.add_row(name, value)
    table.add_row("kids", ", ".join(report.kids) or "-")
    console.print(table)


@app.command()
def verify_config() -> None:
    """Verify the JWKS authentication configuration and connectivity."""
    try:
        container = ContainerFactory().create_container()
        authenticator = container.resolve(BearerTokenAuthenticator)
    except ValueError as e:  # includes pydantic ValidationError
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1)

    report = asyncio.run(authenticator.verify_configuration_async())
    _print_report(report)
    if not report.configured:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
