# mefs_mcp/cli/main_cli.py
import asyncio
import logging
from enum import Enum
from typing import Optional

import typer
from dotenv import load_dotenv

from ..settings import Settings
from ..mefs.errors import MefsError
from ..mefs.signer import private_key_to_address

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="mefs-mcp",
    help="MEFS MCP Storage Server Command Line Interface.",
    no_args_is_help=True
)


class Transport(str, Enum):
    stdio = "stdio"
    http = "http"
    sse = "sse"


def _configure_logging(debug_mode: bool) -> None:
    # basicConfig logs to stderr, which keeps the stdio transport's stdout clean
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level="DEBUG" if debug_mode else "INFO",
            format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
        )


@app.callback()
def main_callback():
    """
    MEFS MCP Storage Server CLI.
    Use 'mefs-mcp serve --help' to start the server.
    """
    # OS environment wins over .env values
    load_dotenv()


@app.command()
def serve(
    transport: Optional[Transport] = typer.Option(
        None, "--transport", "-t", help="MCP transport. Defaults to MCP_TRANSPORT_MODE."
    ),
    host: Optional[str] = typer.Option(None, help="Bind host for the HTTP and SSE transports."),
    port: Optional[int] = typer.Option(None, help="Bind port for the HTTP and SSE transports."),
):
    """Start the MCP server exposing the MEFS 'upload' and 'retrieve' tools."""
    from ..mcp_handlers.mefs_mcp_app import MefsMCPApp

    app_settings = Settings()
    _configure_logging(app_settings.debug_mode)

    mefs_app = MefsMCPApp(app_settings)
    asyncio.run(mefs_app.run(transport=transport.value if transport else None, host=host, port=port))


@app.command()
def address():
    """Print the wallet address derived from MEFS_PRIVATE_KEY."""
    app_settings = Settings()
    if app_settings.mefs_private_key is None:
        typer.secho("MEFS_PRIVATE_KEY is not set.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        wallet_address = private_key_to_address(app_settings.mefs_private_key.get_secret_value())
    except MefsError as e:
        typer.secho(f"Invalid MEFS_PRIVATE_KEY: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(wallet_address)


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
