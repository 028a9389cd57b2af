"""stream2drive CLI - Main commands."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .. import __version__, setup_logging
from ..client import DriveClient
from ..core.api import APIConfig
from ..core.auth import TokenCredentials
from ..core.exceptions import DriveException
from .progress import transfer_progress

APP_NAME = "stream2drive"

app = typer.Typer(
    name=APP_NAME,
    help="Stream files and pipes to and from Google Drive. Use '-' as <file> for standard input/output.",
    add_completion=False
)
# stdout carries file data for 'get <file> -'; everything else goes to stderr
console = Console(stderr=True)


@dataclass
class CliOptions:
    """Global options shared by all commands."""
    config: APIConfig
    parent: Optional[str] = None
    output: Optional[str] = None
    mime: Optional[str] = None
    verbose: int = 0
    oob: bool = False


def configure_logging(verbose: int) -> None:
    """Route log records to stderr through rich."""
    if verbose <= 0:
        # The driver reports failures itself
        level = logging.CRITICAL
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )
    # Module loggers pin WARNING when imported before any handler exists
    setup_logging(level)


def version_callback(value: bool):
    if value:
        console.print(f"{APP_NAME} {__version__}")
        raise typer.Exit()


def make_client(opts: CliOptions) -> DriveClient:
    """Create the client, asking for the token on the terminal with --oob."""
    credentials = None
    if opts.oob:
        token = typer.prompt("Access token", hide_input=True, err=True)
        credentials = TokenCredentials(token.strip())
    return DriveClient(opts.config, credentials)


async def resolve_parent(drive: DriveClient, opts: CliOptions) -> Optional[str]:
    """--parent folder name -> folder id (None means Drive root)."""
    if not opts.parent:
        return None
    return await drive.resolve_folder(opts.parent)


def run_command(coro):
    """Run a command coroutine and turn failures into a one-line error."""
    try:
        return asyncio.run(coro)
    except DriveException as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]I/O error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.callback()
def main_options(
    ctx: typer.Context,
    parent: Optional[str] = typer.Option(
        None, "--parent", "-p", help="Operate inside this Drive folder instead of root."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Local file name for get, remote file name for put."
    ),
    mime: Optional[str] = typer.Option(
        None, "--mime", "-m", help="Override guessed MIME type."
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Show progress and log messages (twice for debug)."
    ),
    oob: bool = typer.Option(
        False, "--oob", help="Provide the access token out-of-band, on the terminal."
    ),
    version: bool = typer.Option(
        False, "--version", "-V", callback=version_callback, is_eager=True,
        help="Print version information."
    ),
):
    """Stream files to and from Google Drive."""
    configure_logging(verbose)
    try:
        config = APIConfig.from_env()
    except ValueError as e:
        console.print(f"[red]Error: invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    ctx.obj = CliOptions(
        config=config,
        parent=parent,
        output=output,
        mime=mime,
        verbose=verbose,
        oob=oob
    )


@app.command()
def get(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="Remote file name"),
    local: Optional[str] = typer.Argument(None, help="Local file name, '-' for standard output"),
):
    """Download a file."""
    opts: CliOptions = ctx.obj
    dest = opts.output or local or file
    drive = make_client(opts)

    async def do_get():
        async with drive:
            parent_id = await resolve_parent(drive, opts)
            with transfer_progress(console, f"Downloading {file}", enabled=opts.verbose > 0) as reporter:
                await drive.download(file, dest, parent_id=parent_id, progress_callback=reporter)

    run_command(do_get())


@app.command()
def put(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="Local file name, '-' for standard input"),
    name: Optional[str] = typer.Argument(None, help="Remote file name"),
):
    """Upload a file."""
    opts: CliOptions = ctx.obj
    remote_name = opts.output or name
    if file == "-" and not remote_name:
        raise typer.BadParameter("a remote name is required when reading standard input", param_hint="NAME")

    drive = make_client(opts)

    async def do_put():
        async with drive:
            parent_id = await resolve_parent(drive, opts)
            label = remote_name or file
            with transfer_progress(console, f"Uploading {label}", enabled=opts.verbose > 0) as reporter:
                result = await drive.upload(
                    file,
                    name=remote_name,
                    mime_type=opts.mime,
                    parent_id=parent_id,
                    progress_callback=reporter
                )
            if opts.verbose > 0:
                console.print(f"[green]Uploaded:[/green] {result.bytes_transferred:,} bytes")

    run_command(do_put())


@app.command("list")
def list_files(ctx: typer.Context):
    """List files with MIME type, owner, size and date."""
    opts: CliOptions = ctx.obj
    drive = make_client(opts)

    async def do_list():
        async with drive:
            parent_id = await resolve_parent(drive, opts)
            for f in await drive.list_files(parent_id):
                typer.echo("%-29s %-19s %12d %s %s" % (
                    f.mime_type, f.last_modifying_user_name, f.file_size or 0,
                    f.modified_date, f.title
                ))

    run_command(do_list())


@app.command()
def md5(ctx: typer.Context):
    """Print MD5 checksums in md5sum format."""
    opts: CliOptions = ctx.obj
    drive = make_client(opts)

    async def do_md5():
        async with drive:
            parent_id = await resolve_parent(drive, opts)
            for f in await drive.list_files(parent_id):
                # Native Google documents have no checksum
                if f.md5_checksum:
                    typer.echo(f"{f.md5_checksum} *{f.title}")

    run_command(do_md5())


def main():
    """Entry point."""
    app(prog_name=APP_NAME)


if __name__ == "__main__":
    main()
