"""CLI commands for vue_ui.

`serve` runs the component protocol server; the client commands (ping, load,
call, state, props, unload, clean) drive a running server.
"""

import asyncio

import typer
from loguru import logger
from rich.console import Console

from vue_ui import __logo__, __version__
from vue_ui.cli.command_groups.client_commands import register_client_commands
from vue_ui.cli.shared.logging_utils import configure_console_logging, ensure_rotating_log_file

app = typer.Typer(
    name="vue-ui",
    help=f"{__logo__} vue-ui - reactive components driven over a socket",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} vue-ui v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
):
    """vue-ui - reactive components driven over a socket."""
    pass


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind host (default: config server.host)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port, 0 for any free port (default: config server.port)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: bool = typer.Option(None, "--log-file/--no-log-file", help="Also log to ~/.vue_ui/logs/serve.log"),
):
    """Start the component protocol server."""
    from vue_ui.config.loader import get_config
    from vue_ui.server import ComponentRegistry, ComponentServer

    config = get_config()
    level = "DEBUG" if verbose else config.logging.level
    configure_console_logging(level)
    if log_file if log_file is not None else config.logging.file:
        log_path = ensure_rotating_log_file("serve", level=level)
        console.print(f"[dim]Logs: {log_path}[/dim]")

    registry = ComponentRegistry(defaults=config.component_defaults())
    server = ComponentServer(
        host or config.server.host,
        port if port is not None else config.server.port,
        registry=registry,
    )
    console.print(f"{__logo__} Starting component server on {server.host}:{server.port}...")
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        console.print("\nShutting down...")
    except OSError as e:
        console.print(f"[red]Cannot listen on {server.host}:{server.port}:[/red] {e}")
        raise typer.Exit(1)
    logger.info("Component server exited")


register_client_commands(app, console)


if __name__ == "__main__":
    app()
