"""Mini README: Entry point CLI for launching the Ledgerdesk API.

This script exposes a Typer CLI that starts the FastAPI application with
configurable host, port, and production flags. Defaults come from
``LEDGERDESK_`` environment variables via the settings model.
"""

from __future__ import annotations

import typer
import uvicorn

from ledgerdesk.configuration import get_settings
from ledgerdesk.logging_utils import configure_root_logger

cli = typer.Typer(help="Launch and manage the Ledgerdesk ledger API.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # Browsers cannot open 0.0.0.0 or ::, so point operators at loopback instead.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting Ledgerdesk on {effective_host}:{effective_port}.\n"
        f"API available at http://{browser_host}:{effective_port}/api"
    )
    if production and not settings.admin_password and settings.seed_admin:
        typer.echo("Warning: LEDGERDESK_ADMIN_PASSWORD is not set; admin login is disabled.")
    uvicorn.run(
        "ledgerdesk.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


if __name__ == "__main__":
    cli()
