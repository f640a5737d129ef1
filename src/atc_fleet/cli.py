"""atc CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from atc_fleet.config.models import AtcConfig
    from atc_fleet.monitor.models import HealthStatus

app = typer.Typer(
    name="atc",
    help="atc: run and check a self-hosted Bluesky stack",
    no_args_is_help=True,
)
console = Console()

_state: dict[str, Optional[Path]] = {"config_path": None}


@app.callback()
def main_callback(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to .atc.yaml"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="[%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    _state["config_path"] = config


def _load() -> AtcConfig:
    from atc_fleet.config.loader import load_config

    try:
        return load_config(path=_state["config_path"])
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/red] {exc}")
    return typer.Exit(1)


@app.command()
def start(
    services: Optional[list[str]] = typer.Argument(None, help="Services to start (default: all)"),
    no_deps: bool = typer.Option(False, "--no-deps", help="Skip the docker dependency check"),
) -> None:
    """Start the stack, or only the named services."""
    from atc_fleet.errors import OrchestrationError
    from atc_fleet.fleet.controller import ComposeController

    config = _load()
    controller = ComposeController.from_config(config)

    async def _start() -> None:
        if not no_deps:
            await controller.check_dependencies()
        await controller.start(services or None)

    try:
        asyncio.run(_start())
    except OrchestrationError as exc:
        raise _fail(exc)
    console.print("[green]Services started successfully![/green]")


@app.command()
def stop(
    clean: bool = typer.Option(False, "--clean", help="Also remove volumes (deletes all data)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before removing volumes"),
) -> None:
    """Stop the stack."""
    from atc_fleet.errors import OrchestrationError
    from atc_fleet.fleet.controller import ComposeController

    config = _load()
    if clean and not yes:
        typer.confirm("This permanently deletes all service data. Continue?", abort=True)

    controller = ComposeController.from_config(config)
    try:
        asyncio.run(controller.stop(purge=clean))
    except OrchestrationError as exc:
        raise _fail(exc)
    console.print("[green]Services stopped successfully![/green]")


@app.command()
def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show process state and ports"),
    probe: bool = typer.Option(False, "--probe", help="Also run health probes"),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON"),
) -> None:
    """Show every catalog service and whether it is running."""
    from atc_fleet.errors import OrchestrationError
    from atc_fleet.monitor import factory

    config = _load()
    aggregator = factory.status_aggregator(config)
    try:
        snapshot = asyncio.run(aggregator.snapshot(verbose=verbose, probe=probe))
    except OrchestrationError as exc:
        raise _fail(exc)

    if as_json:
        console.print_json(json.dumps(snapshot.to_dict()))
        return

    table = Table(title="Service Status")
    table.add_column("Service", style="bold")
    table.add_column("Status")
    if probe:
        table.add_column("Health")
        table.add_column("Latency")
    if verbose:
        table.add_column("Details")

    for name, s in snapshot.services.items():
        running = "[green]✓ Running[/green]" if s.running else "[red]✗ Stopped[/red]"
        row = [name, running]
        if probe:
            row.append(_health_label(s.health) if s.health else "-")
            row.append(f"{s.health.latency_ms}ms" if s.health else "-")
        if verbose:
            row.append(", ".join(f"{k}: {v}" for k, v in s.details.items()) or "-")
        table.add_row(*row)

    console.print(table)
    console.print(f"\nLast Updated: {snapshot.timestamp.isoformat()}")


def _health_label(result: HealthStatus) -> str:
    from atc_fleet.monitor.models import HealthState

    if result.status is HealthState.HEALTHY:
        return "[green]✓ healthy[/green]"
    if result.status is HealthState.DEGRADED:
        return "[yellow]! degraded[/yellow]"
    return "[red]✗ unhealthy[/red]"


@app.command()
def health(
    services: Optional[list[str]] = typer.Argument(None, help="Services to probe (default: all)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show latency and details"),
) -> None:
    """Probe service health endpoints."""
    from atc_fleet.catalog import CATALOG
    from atc_fleet.monitor import factory

    config = _load()
    checker = factory.health_checker(config)
    names = services or [s.value for s in CATALOG]
    results = asyncio.run(checker.check_all(names))

    all_healthy = True
    for name in names:
        result = results[name]
        all_healthy = all_healthy and result.healthy
        console.print(f"{_health_label(result)} [bold]{name}[/bold]")
        if verbose:
            console.print(f"  Latency: {result.latency_ms}ms")
            if result.details:
                console.print(f"  Details: {result.details}")

    if not all_healthy:
        raise typer.Exit(1)


@app.command()
def check(
    no_dns: bool = typer.Option(False, "--no-dns", help="Skip DNS, HTTPS and WebSocket checks"),
    no_docker: bool = typer.Option(False, "--no-docker", help="Skip docker dependency checks"),
) -> None:
    """Check environment readiness."""
    from atc_fleet.errors import OrchestrationError
    from atc_fleet.fleet.controller import ComposeController
    from atc_fleet.monitor import factory

    config = _load()
    compose_file = Path(config.compose.file)
    if not compose_file.exists():
        console.print(f"[red]✗ {compose_file} not found.[/red]")
        raise typer.Exit(1)

    failed = False
    if not no_dns:
        gate = factory.readiness_gate(config)
        result = asyncio.run(gate.run())
        for label, ok in (
            ("DNS configuration", result.dns),
            ("HTTPS endpoint", result.https),
            ("WebSocket endpoint", result.websocket),
        ):
            if ok:
                console.print(f"[green]✓[/green] {label}: OK")
            else:
                console.print(f"[red]✗ {label}: FAILED[/red]")
                failed = True

    if not no_docker:
        try:
            asyncio.run(ComposeController.from_config(config).check_dependencies())
            console.print("[green]✓[/green] Docker dependencies: OK")
        except OrchestrationError as exc:
            console.print(f"[red]✗ Docker dependencies: {exc}[/red]")
            failed = True

    if failed:
        console.print("\n[red bold]Environment check failed.[/red bold]")
        raise typer.Exit(1)
    console.print("\n[green bold]Environment check completed successfully![/green bold]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind host"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Serve the read-only status API."""
    import uvicorn

    console.print(f"[bold]atc[/bold] status API on http://{host}:{port}")
    uvicorn.run("atc_fleet.api.app:create_app", factory=True, host=host, port=port, reload=False)


config_app = typer.Typer(name="config", help="Configuration commands")
app.add_typer(config_app)


@config_app.command("validate")
def config_validate(
    path: Optional[Path] = typer.Option(None, "--path", "-p", help="Path to .atc.yaml"),
) -> None:
    """Validate configuration file."""
    import yaml

    from atc_fleet.catalog import LogicalService
    from atc_fleet.config.loader import load_config

    try:
        config = load_config(path=path or _state["config_path"])
        console.print("[green]✓[/green] YAML parses correctly")
        console.print("[green]✓[/green] Pydantic validation passes")
    except FileNotFoundError as exc:
        console.print(f"[red]✗ {exc}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as exc:
        console.print(f"[red]✗ YAML parsing failed: {exc}[/red]")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print("[green]✓[/green] YAML parses correctly")
        console.print(f"[red]✗ Pydantic validation failed: {exc}[/red]")
        raise typer.Exit(1)

    errors: list[str] = []
    if not config.network.domain.strip():
        errors.append("network.domain cannot be empty")
    if not config.network.bind_address.strip():
        errors.append("network.bind_address cannot be empty")
    if not config.compose.command:
        errors.append("compose.command cannot be empty")
    if config.compose.timeout is not None and config.compose.timeout <= 0:
        errors.append("compose.timeout must be positive")
    for field_name in ("health_timeout", "dns_timeout", "readiness_timeout"):
        if getattr(config.probes, field_name) <= 0:
            errors.append(f"probes.{field_name} must be positive")
    if not Path(config.compose.file).exists():
        console.print(f"[yellow]! Compose file {config.compose.file} does not exist yet[/yellow]")

    if errors:
        for err in errors:
            console.print(f"[red]✗ {err}[/red]")
        console.print(f"\n[red bold]{len(errors)} validation error(s) found.[/red bold]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {len(LogicalService)} catalog services will be tracked")
    console.print("\n[green bold]Configuration is valid.[/green bold]")


@config_app.command("show")
def config_show() -> None:
    """Print resolved configuration."""
    config = _load()

    console.print("[bold]Network:[/bold]")
    console.print(f"  Domain: {config.network.domain}")
    console.print(f"  Bind address: {config.network.bind_address}")
    console.print(f"  TLS: {config.network.use_tls}\n")

    console.print("[bold]Compose:[/bold]")
    console.print(f"  File: {config.compose.file}")
    console.print(f"  Command: {' '.join(config.compose.command)}")
    console.print(f"  Secrets: {config.compose.secrets_file}")
    timeout = f"{config.compose.timeout}s" if config.compose.timeout else "none"
    console.print(f"  Timeout: {timeout}\n")

    console.print("[bold]Probes:[/bold]")
    console.print(f"  Health timeout: {config.probes.health_timeout}s")
    console.print(f"  DNS timeout: {config.probes.dns_timeout}s")
    console.print(f"  Readiness timeout: {config.probes.readiness_timeout}s")
    console.print(f"  Verify TLS: {config.probes.verify_tls}")


def main() -> None:
    app()
