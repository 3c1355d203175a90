import typer
from rich.console import Console
from rich.table import Table

from ..config import (
    CONFIG_FILE,
    get_encoder_name,
    get_registry_url,
    get_spinner_interval,
    set_encoder_name,
    set_registry_url,
)
from ..domain.errors import ConfigError

app = typer.Typer()
console = Console()


@app.command("show")
def show_config():
    """show the active configuration."""
    table = Table(title=f"Configuration ({CONFIG_FILE})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("registry", get_registry_url())
    table.add_row("encoder", get_encoder_name())
    table.add_row("spinner interval", f"{int(get_spinner_interval() * 1000)} ms")

    console.print(table)


@app.command("set-registry")
def set_registry(url: str):
    """set the registry queried by default."""
    try:
        set_registry_url(url)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]✓ Registry set to {url}[/green]")


@app.command("set-encoder")
def set_encoder(name: str):
    """
    set how package names are turned into registry paths.

    'npm' escapes the scope separator of scoped packages, 'plain' escapes everything.
    """
    try:
        set_encoder_name(name)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]✓ Encoder set to {name}[/green]")
