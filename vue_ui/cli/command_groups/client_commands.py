"""Client commands driving a running component server."""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from vue_ui.cli.shared.client_utils import parse_json_object, parse_value, run_with_client
from vue_ui.config.loader import get_config


def _endpoint(host: str | None, port: int | None, timeout: float | None) -> tuple[str, int, float]:
    config = get_config()
    return (
        host or config.server.host,
        port if port is not None else config.server.port,
        timeout if timeout is not None else config.bridge.timeout_seconds,
    )


def _print_state(console: Console, state: dict[str, Any]) -> None:
    table = Table(title=f"{state.get('component_type', 'Component')} {state.get('id', '')}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in state.items():
        if key in ("id", "component_type", "options", "selected_options"):
            continue
        table.add_row(key, repr(value))
    console.print(table)
    options = state.get("options") or []
    if options:
        opts = Table(title="Options")
        opts.add_column("#", justify="right")
        opts.add_column("id")
        opts.add_column("text")
        opts.add_column("value")
        for i, option in enumerate(options):
            opts.add_row(str(i), str(option.get("id")), str(option.get("text")), repr(option.get("value")))
        console.print(opts)


def register_client_commands(app: typer.Typer, console: Console) -> None:
    """Register ping/load/call/state/props/unload/clean on the main app."""
    def host_opt():
        return typer.Option(None, "--host", help="Server host (default: config server.host)")

    def port_opt():
        return typer.Option(None, "--port", "-p", help="Server port (default: config server.port)")

    def timeout_opt():
        return typer.Option(None, "--timeout", help="Seconds to wait for each reply")

    @app.command("ping")
    def ping(host: str = host_opt(), port: int = port_opt(), timeout: float = timeout_opt()) -> None:
        """Check that a component server answers."""
        h, p, t = _endpoint(host, port, timeout)
        ok = run_with_client(console, h, p, t, lambda c: c.ping())
        if not ok:
            console.print("[red]Unexpected reply to ping[/red]")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] pong from {h}:{p}")

    @app.command("load")
    def load(
        name: str = typer.Argument(..., help="Component type, e.g. Select"),
        component_id: str = typer.Option(None, "--id", help="Fixed component id"),
        props: str = typer.Option(None, "--props", help='Props as a JSON object, e.g. \'{"title": "Pick"}\''),
        force: bool = typer.Option(False, "--force", help="Replace a component with the same id"),
        host: str = host_opt(),
        port: int = port_opt(),
        timeout: float = timeout_opt(),
    ) -> None:
        """Load (create and mount) a component."""
        h, p, t = _endpoint(host, port, timeout)
        values = parse_json_object(props, "--props")
        reply = run_with_client(
            console, h, p, t,
            lambda c: c.load_component(name, component_id=component_id, force=force, **values),
        )
        console.print(f"[green]✓[/green] Loaded {reply.get('name')} [cyan]{reply.get('component_id')}[/cyan]")
        console.print(f"[dim]methods: {', '.join(reply.get('methods') or [])}[/dim]")

    @app.command("call")
    def call(
        component_id: str = typer.Argument(..., help="Component id"),
        method: str = typer.Argument(..., help="Method name, e.g. select_option"),
        args: list[str] = typer.Argument(None, help="Arguments; each parsed as JSON when possible"),
        host: str = host_opt(),
        port: int = port_opt(),
        timeout: float = timeout_opt(),
    ) -> None:
        """Call a component method."""
        h, p, t = _endpoint(host, port, timeout)
        values = [parse_value(a) for a in args or []]
        result = run_with_client(console, h, p, t, lambda c: c.call_method(component_id, method, *values))
        console.print_json(data={"method": method, "result": result})

    @app.command("state")
    def state(
        component_id: str = typer.Argument(..., help="Component id"),
        as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
        host: str = host_opt(),
        port: int = port_opt(),
        timeout: float = timeout_opt(),
    ) -> None:
        """Show a component's state."""
        h, p, t = _endpoint(host, port, timeout)
        data = run_with_client(console, h, p, t, lambda c: c.get_state(component_id))
        if as_json:
            console.print_json(data=data)
        else:
            _print_state(console, data)

    @app.command("props")
    def props(
        component_id: str = typer.Argument(..., help="Component id"),
        values: str = typer.Argument(..., help="Props as a JSON object"),
        host: str = host_opt(),
        port: int = port_opt(),
        timeout: float = timeout_opt(),
    ) -> None:
        """Set component props."""
        h, p, t = _endpoint(host, port, timeout)
        patch = parse_json_object(values, "VALUES")
        run_with_client(console, h, p, t, lambda c: c.set_props(component_id, patch))
        console.print(f"[green]✓[/green] Updated {', '.join(patch) or 'nothing'} on {component_id}")

    @app.command("unload")
    def unload(
        component_id: str = typer.Argument(..., help="Component id"),
        host: str = host_opt(),
        port: int = port_opt(),
        timeout: float = timeout_opt(),
    ) -> None:
        """Destroy a component and remove it from the server."""
        h, p, t = _endpoint(host, port, timeout)
        run_with_client(console, h, p, t, lambda c: c.unload_component(component_id))
        console.print(f"[green]✓[/green] Unloaded {component_id}")

    @app.command("clean")
    def clean(host: str = host_opt(), port: int = port_opt(), timeout: float = timeout_opt()) -> None:
        """Destroy every component on the server."""
        h, p, t = _endpoint(host, port, timeout)
        count = run_with_client(console, h, p, t, lambda c: c.clean_all())
        console.print(f"[green]✓[/green] Cleaned {count} component(s)")
