"""
CLI Entrypoint for Drive Relay

Streams a remote URL into Google Drive using a stored OAuth2 refresh token.
Secrets are read from the environment: GOOGLE_CLIENT_ID,
GOOGLE_CLIENT_SECRET, and the refresh token from the variable named by
--refresh-token-name.

Usage:
    drive-relay upload --url URL --refresh-token-name KEY [OPTIONS]
    drive-relay check --refresh-token-name KEY [--parent-key KEY]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import structlog
import typer
import yaml  # type: ignore[import-untyped]
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from drive_relay.gdrive.config import RelayJob, describe_environment
from drive_relay.gdrive.errors import ConfigurationError, RelayError
from drive_relay.pipeline import create_pipeline, write_result

app = typer.Typer(
    name="drive-relay",
    help="Stream a remote file into Google Drive without buffering it",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger()


def _configure_logging(verbose: bool) -> None:
    """Route stdlib and structlog output at INFO, or DEBUG with --verbose."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


@app.command()
def upload(
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="URL of the file to relay (redirects are followed)",
    ),
    filename: Optional[str] = typer.Option(
        None,
        "--filename",
        "-f",
        help="Name of the Drive file (default: last path segment of the URL)",
    ),
    refresh_token_name: Optional[str] = typer.Option(
        None,
        "--refresh-token-name",
        "-t",
        help="Environment variable holding the refresh token (e.g. DRIVE_REFRESH_TOKEN_MAIN)",
    ),
    parent_key: Optional[str] = typer.Option(
        None,
        "--parent-key",
        "-p",
        help="Environment variable holding the target folder id",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings.yaml configuration file",
        exists=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the result JSON (default: out/result.json)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Relay a remote file into Google Drive.

    The file is streamed from the source straight into a resumable upload
    session; it is never written to disk or held in memory whole.

    Examples:
        # Upload to the Drive root, name taken from the URL
        drive-relay upload -u https://example.com/report.csv -t DRIVE_REFRESH_TOKEN_MAIN

        # Upload into a folder under an explicit name
        drive-relay upload -u https://example.com/dl?id=7 -f data.zip \\
            -t DRIVE_REFRESH_TOKEN_MAIN -p DRIVE_FOLDER_BACKUPS
    """
    _configure_logging(verbose)

    try:
        job = RelayJob.from_environment(
            url=url,
            refresh_token_name=refresh_token_name,
            filename=filename,
            parent_key=parent_key,
        )
    except ConfigurationError as e:
        console.print(f"[red]{e}[/]")
        for name in e.missing:
            console.print(f"  [red]MISSING[/] {name}")
        raise typer.Exit(1) from e

    try:
        pipeline = create_pipeline(config_path=str(config) if config else None)
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"Invalid settings: {e}", style="red", markup=False)
        raise typer.Exit(1) from e

    for status in describe_environment(refresh_token_name, parent_key):
        logger.debug("secret_status", name=status.name, present=status.present, length=status.length)

    console.print("[bold blue]=== Google Drive Remote Uploader ===[/]")
    console.print(f"URL: {job.source_url}")
    console.print(f"Filename: {job.target.name}")
    console.print(f"Refresh Token: {refresh_token_name}")
    if parent_key:
        console.print(f"Parent Folder: {parent_key}")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Streaming to Google Drive...", total=None)
            result = pipeline.run(job)
    except RelayError as e:
        console.print("\n[bold red]=== ERROR ===[/]")
        console.print(str(e), style="red", markup=False)
        console.print_exception()
        raise typer.Exit(1) from e

    result_path = write_result(result, output or pipeline.config.output.result_path)

    console.print("\n[bold]=== RESULT ===[/]")
    console.print_json(data=result.to_artifact())
    console.print(f"\n[bold green]File uploaded successfully:[/] {result.view_link}")
    console.print(f"[dim]Result written to {result_path}[/]")


@app.command()
def check(
    refresh_token_name: str = typer.Option(
        ...,
        "--refresh-token-name",
        "-t",
        help="Environment variable holding the refresh token",
    ),
    parent_key: Optional[str] = typer.Option(
        None,
        "--parent-key",
        "-p",
        help="Environment variable holding the target folder id",
    ),
) -> None:
    """
    Report which secrets are available, without making any network call.

    Only presence and length are shown; secret values are never printed.
    """
    statuses = describe_environment(refresh_token_name, parent_key)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Variable")
    table.add_column("Status")
    table.add_column("Length", justify="right")

    for status in statuses:
        if status.present:
            state = "[green]EXISTS[/]"
        elif status.required:
            state = "[red]MISSING[/]"
        else:
            state = "[yellow]UNSET[/]"
        table.add_row(status.name, state, str(status.length))

    console.print(table)

    missing = [s.name for s in statuses if s.required and not s.present]
    if missing:
        console.print(f"[red]Missing: {', '.join(missing)}[/]")
        raise typer.Exit(1)

    console.print("[bold green]All required secrets present.[/]")


if __name__ == "__main__":
    app()
