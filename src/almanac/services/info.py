from rich.panel import Panel
from rich.table import Table
from pydantic import ValidationError

from ..domain.errors import FormatError
from ..domain.models import NodePackage
from ..registry.fetcher import MetadataFetcher
from ..ui.status import StatusRenderer


class InfoService:
    """handles fetching and displaying package information."""

    def __init__(self, fetcher: MetadataFetcher, renderer: StatusRenderer):
        self.fetcher = fetcher
        self.renderer = renderer

    async def get_package(self, package_name: str) -> NodePackage:
        """fetch a package document and validate it."""
        data = await self.fetcher.fetch(package_name)
        try:
            return NodePackage.model_validate(data)
        except ValidationError as e:
            raise FormatError(f"Registry returned an unexpected package document: {e}", package_name) from e

    async def show_info(self, package_name: str) -> NodePackage:
        """
        fetch and display information about a package.

        args:
            package_name: name of the package

        returns:
            the validated package document
        """
        self.renderer.append_line(f"Querying {self.fetcher.resolve_url(package_name)}")
        package = await self.get_package(package_name)
        self.renderer.update_line(f"Fetched '{package.name}'")

        grid = Table.grid(expand=True)
        grid.add_column(style="bold cyan", justify="right")
        grid.add_column(style="white")

        grid.add_row("Name:", package.name)
        grid.add_row("Latest:", package.latest_version or "unknown")
        grid.add_row("Description:", package.description or "No description provided.")

        if package.author:
            grid.add_row("Author:", package.author)
        if package.license:
            grid.add_row("License:", package.license)
        if package.homepage:
            grid.add_row("Homepage:", package.homepage)

        recent = package.newest_versions()
        if recent:
            grid.add_row("Recent Versions:", ", ".join(recent))
        grid.add_row("Total Versions:", str(len(package.versions)))

        self.renderer.console.print(Panel(grid, title=f"Package Info: {package.name}", border_style="cyan"))
        return package
