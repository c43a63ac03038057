"""TeraBox CLI - Main commands."""
import asyncio
import logging
import signal
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from teraboxpy import setup_logging
from teraboxpy.client import TeraboxClient
from teraboxpy.core.api import TeraboxSettings
from teraboxpy.core.exceptions import ConfigurationError
from teraboxpy.core.logging import human_size
from teraboxpy.core.upload import UploadProgress, UploadSummary

app = typer.Typer(
    name="terabox",
    help="Upload RTSP recording segments to TeraBox",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Read settings from this .env file"),
):
    """Load .env settings and set up logging."""
    load_dotenv(env_file)
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)]
    )
    setup_logging(level)


def load_settings(dest: Optional[str] = None) -> TeraboxSettings:
    """Settings from the environment, exiting with a message when incomplete."""
    settings = TeraboxSettings.from_env()
    if dest:
        settings.remote_folder = dest
    try:
        return settings.validate()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Set them in the environment or a .env file.")
        raise typer.Exit(1)


def print_summary(summary: UploadSummary):
    table = Table(title="Upload summary")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Result")
    table.add_column("Detail")

    for result in summary.results:
        if result.succeeded:
            status = "[green]done[/green]"
            detail = "rapid upload" if result.rapid_upload else f"{result.piece_count} piece(s)"
        else:
            status = "[red]failed[/red]"
            detail = str(result.error) if result.error else ""
        table.add_row(result.target.file_name, human_size(result.target.size), status, detail)

    console.print(table)
    console.print(f"{summary.succeeded}/{summary.total} files uploaded successfully")


@app.command()
def upload(
    files: List[Path] = typer.Argument(..., help="Files to upload"),
    dest: Optional[str] = typer.Option(None, "--dest", "-d", help="Remote folder"),
    delete: bool = typer.Option(False, "--delete", help="Delete local files after a successful upload"),
    no_progress: bool = typer.Option(False, "--no-progress", help="Disable the progress bar"),
):
    """Upload files, one at a time."""
    settings = load_settings(dest)

    async def do_upload() -> UploadSummary:
        if no_progress:
            async with TeraboxClient(settings) as terabox:
                return await terabox.upload_many(files, delete=delete)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Uploading", total=100)

            def on_progress(p: UploadProgress):
                progress.update(
                    task,
                    completed=p.percentage,
                    description=f"Uploading piece {p.uploaded_pieces}/{p.total_pieces}"
                )

            async with TeraboxClient(settings, progress_callback=on_progress) as terabox:
                return await terabox.upload_many(files, delete=delete)

    summary = run_async(do_upload())
    print_summary(summary)
    if not summary.all_succeeded:
        raise typer.Exit(1)


@app.command()
def watch(
    directory: Path = typer.Argument(Path("videos"), help="Directory receiving finished segments"),
    dest: Optional[str] = typer.Option(None, "--dest", "-d", help="Remote folder"),
    initial_scan: bool = typer.Option(True, "--initial-scan/--no-initial-scan", help="Upload files already present"),
    min_age: float = typer.Option(30.0, "--min-age", help="Seconds since last write before an existing file is picked up"),
    keep: bool = typer.Option(False, "--keep", help="Keep local files after upload"),
):
    """Watch a directory and upload every finished segment."""
    settings = load_settings(dest)
    if keep:
        settings.delete_after_upload = False

    async def do_watch() -> UploadSummary:
        async with TeraboxClient(settings) as terabox:
            watcher = terabox.watcher(directory, min_age=min_age)
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, watcher.stop)
                except NotImplementedError:
                    pass
            console.print(f"[green]Watching {directory} -> {settings.target_folder}[/green]")
            console.print("Press Ctrl+C to stop")
            return await watcher.run(initial_scan=initial_scan)

    summary = run_async(do_watch())
    console.print(f"Stopped. {summary.succeeded} succeeded, {summary.failed} failed")


@app.command()
def quota():
    """Show storage quota."""
    settings = load_settings()

    async def do_quota():
        async with TeraboxClient(settings) as terabox:
            snapshot = await terabox.get_quota()

        if not snapshot.is_known:
            console.print("[yellow]Quota information unavailable[/yellow]")
            raise typer.Exit(1)

        table = Table(title="Storage Quota")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Total", human_size(snapshot.total_bytes))
        table.add_row("Used", human_size(snapshot.used_bytes))
        table.add_row("Free", human_size(snapshot.free_bytes))
        table.add_row("Tier", "VIP" if snapshot.is_privileged_account else "Standard")
        table.add_row("Max file size", human_size(snapshot.max_file_size))
        console.print(table)

    run_async(do_quota())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
