import asyncio
import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import get_encoder_name, get_registry_url, get_spinner_interval
from ..domain.errors import AlmanacError
from ..registry.encoders import get_encoder
from ..registry.fetcher import MetadataFetcher
from ..services.check import CheckService, parse_requirement
from ..services.info import InfoService
from ..ui.status import StatusRenderer
from .config_commands import app as config_app

app = typer.Typer()
console = Console()

# add config subcommand
app.add_typer(config_app, name="config", help="Manage registry configuration")


def get_renderer() -> StatusRenderer:
    return StatusRenderer(console, spinner_interval=get_spinner_interval())


def get_info_service(renderer: StatusRenderer, registry: Optional[str] = None) -> InfoService:
    fetcher = MetadataFetcher(
        registry or get_registry_url(),
        get_encoder(get_encoder_name()),
        reporter=renderer,
    )
    return InfoService(fetcher, renderer)


def run_with_renderer(renderer: StatusRenderer, coro, has_secondary_line: bool = False):
    """run a coroutine, restoring the terminal on exit or interrupt."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        renderer.force_exit(has_secondary_line)
    finally:
        renderer.close()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """look up package metadata in an http package registry."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@app.command()
def info(
    name: str,
    registry: Optional[str] = typer.Option(None, "--registry", "-r", help="Registry URL to query"),
):
    """show information about a package."""
    renderer = get_renderer()
    try:
        service = get_info_service(renderer, registry)
        run_with_renderer(renderer, service.show_info(name))
    except AlmanacError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    requirements: List[str] = typer.Argument(..., help="Packages as NAME@VERSION"),
    registry: Optional[str] = typer.Option(None, "--registry", "-r", help="Registry URL to query"),
):
    """check whether packages have newer versions in the registry."""
    try:
        parsed = [parse_requirement(r) for r in requirements]
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    renderer = get_renderer()
    try:
        service = CheckService(get_info_service(renderer, registry))
        results = run_with_renderer(renderer, service.check(parsed), has_secondary_line=True)
    except AlmanacError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    outdated = [r for r in results if r.outdated]
    failed = [r for r in results if r.failed]
    if outdated:
        console.print(f"[yellow]{len(outdated)} package(s) can be updated.[/yellow]")
    elif not failed:
        console.print("[green]All packages are up to date.[/green]")
    if failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
