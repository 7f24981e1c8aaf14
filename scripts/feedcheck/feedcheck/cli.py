"""Command-line interface for feedcheck.

Provides commands for:
- check: Find the packages each configured feed is still missing
- sources: Show the NuGet.Config sources and credential state
- init-config: Generate configuration
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from feedcheck import __version__
from feedcheck.config.defaults import write_default_config
from feedcheck.config.loader import load_config
from feedcheck.context import RegistryContext
from feedcheck.diagnostics import ConsoleDiagnostics, Verbosity
from feedcheck.exceptions import ConfigurationError, FeedCheckError
from feedcheck.feed import Feed, FeedStatus, ProjectToPublish
from feedcheck.sources.loader import load_default_settings
from feedcheck.sources.provider import PackageSourceProvider

app = typer.Typer(
    name="feedcheck",
    help="Find the packages of a build that still need publishing to NuGet feeds",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"feedcheck version {__version__}")
        raise typer.Exit()


def display_statuses(statuses: list[FeedStatus], version: str) -> None:
    """Display feed statuses in a table."""
    table = Table(title=f"Packages to publish ({version})")
    table.add_column("Feed", style="cyan")
    table.add_column("To publish", justify="right")
    table.add_column("Already published", justify="right")
    table.add_column("Packages")

    for status in statuses:
        count = len(status.to_publish)
        table.add_row(
            status.name,
            f"[yellow]{count}[/yellow]" if count else "[green]0[/green]",
            str(status.already_published),
            ", ".join(status.to_publish) or "-",
        )
    console.print(table)


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Find the packages of a build that still need publishing to NuGet feeds."""
    pass


@app.command()
def check(
    package_version: str = typer.Option(  # noqa: B008
        ...,
        "--package-version",
        help="Version the packages would be published with",
    ),
    project: list[str] = typer.Option(  # noqa: B008
        None,
        "--project",
        "-p",
        help="Package to check (repeatable, defaults to 'projects' in the config)",
    ),
    feed: list[str] = typer.Option(  # noqa: B008
        None,
        "--feed",
        "-f",
        help="Only check this configured feed (repeatable)",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
    json_output: bool = typer.Option(  # noqa: B008
        False,
        "--json",
        help="Print results as JSON",
    ),
    verbose: int = typer.Option(  # noqa: B008
        0,
        "--verbose",
        "-v",
        count=True,
        help="More output (-v verbose, -vv diagnostic)",
    ),
) -> None:
    """Check which packages each feed is still missing."""
    try:
        cfg = load_config(config)

        if json_output:
            verbosity = Verbosity.MINIMAL
        else:
            verbosity = Verbosity(min(Verbosity.NORMAL + verbose, Verbosity.DIAGNOSTIC))
        host = ConsoleDiagnostics(Console(stderr=True), verbosity)
        context = RegistryContext.create(host, config=cfg)

        names = list(project or cfg.projects)
        if not names:
            raise ConfigurationError(
                "No packages to check",
                fix_hint="Pass --project NAME or list 'projects' in the configuration",
            )

        if feed:
            selected = []
            for feed_name in feed:
                feed_cfg = cfg.get_feed(feed_name)
                if feed_cfg is None:
                    raise ConfigurationError(
                        f"Unknown feed: {feed_name}",
                        details=f"Configured feeds: {', '.join(f.name for f in cfg.feeds) or 'none'}",
                    )
                selected.append(feed_cfg)
        else:
            selected = list(cfg.feeds)
        if not selected:
            raise ConfigurationError(
                "No feeds configured",
                fix_hint="Add 'feeds' to the configuration or run 'feedcheck init-config'",
            )

        candidates = [ProjectToPublish(name) for name in names]
        statuses: list[FeedStatus] = []
        for feed_cfg in selected:
            remote = Feed(feed_cfg.name, feed_cfg.resolved_url(), context)
            remote.check_existence(candidates, package_version)
            remote.describe_status(host, candidates)
            statuses.append(remote.status())

        if json_output:
            payload = {"version": package_version, "feeds": [s.to_dict() for s in statuses]}
            typer.echo(json.dumps(payload, indent=2))
        else:
            display_statuses(statuses, package_version)

    except FeedCheckError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def sources(
    root: Path | None = typer.Option(  # noqa: B008
        None,
        "--root",
        "-r",
        help="Directory NuGet.Config discovery starts from (defaults to cwd)",
    ),
) -> None:
    """Show configured NuGet sources and whether they carry usable credentials."""
    try:
        settings = load_default_settings(root)
        provider = PackageSourceProvider(settings)

        for warning in settings.warnings:
            console.print(f"[yellow]Warning:[/yellow] {warning}")

        table = Table(title="Package Sources")
        table.add_column("Name", style="cyan")
        table.add_column("Source")
        table.add_column("Enabled")
        table.add_column("Credentials")

        for source in provider.load_package_sources():
            if source.credentials is None:
                credentials = "[dim]none[/dim]"
            elif source.credentials.is_valid():
                credentials = f"[green]{source.credentials.username}[/green]"
            else:
                credentials = "[red]invalid[/red]"
            table.add_row(
                source.name,
                source.source,
                "yes" if source.is_enabled else "[dim]no[/dim]",
                credentials,
            )

        console.print(table)
        if settings.config_paths:
            console.print("[dim]Settings files: " + ", ".join(str(p) for p in settings.config_paths) + "[/dim]")
        else:
            console.print("[dim]No NuGet.Config found[/dim]")

    except FeedCheckError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command("init-config")
def init_config(
    output: Path = typer.Option(  # noqa: B008
        Path("config/feedcheck.yml"),
        "--output",
        "-o",
        help="Output file path",
    ),
    force: bool = typer.Option(  # noqa: B008
        False,
        "--force",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Generate a starter configuration from the NuGet.Config sources."""
    if output.exists() and not force:
        console.print(f"[red]Configuration already exists:[/red] {output}")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        write_default_config(output, project_root=Path.cwd())
        console.print(f"[green]Configuration written to:[/green] {output}")
    except OSError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()
