"""CLI for filebucket."""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import BucketConfig, default_config_path, load_config
from .constants import DEFAULT_PORT
from .errors import BucketError, ConfigurationError, NotFoundError
from .registry import BucketRegistry
from .service import BucketService
from .storage import Bucket, make_bucket
from .utils import format_iso_date, humanize_size


app = typer.Typer(help="""\
Back up file contents into a content-addressed filebucket and restore them
later by digest. Buckets are local directories or remote bucket services.""")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    err_console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def open_bucket(
    bucket: Optional[str] = None,
    config: Optional[Path] = None,
    local: Optional[Path] = None,
    server: Optional[str] = None,
    port: Optional[int] = None,
) -> Bucket:
    """Resolve command-line options to a bucket.

    Precedence: ``--server``, then ``--bucket`` from the config file, then
    ``--local`` (or the default bucket directory).

    A named bucket is built through a registry holding only that entry, so
    other remotes listed in the config file are never contacted.

    Raises:
        ConfigurationError: If the named bucket is not configured
    """
    if server:
        return make_bucket(BucketConfig(name=server, server=server, port=port))

    if bucket:
        config_path = config or default_config_path()
        if config_path is None:
            raise ConfigurationError(
                f"Filebucket '{bucket}' requested but no config file given "
                "(use --config or set FILEBUCKET_CONFIG)"
            )
        selected = [c for c in load_config(config_path) if c.name == bucket]
        if not selected:
            raise ConfigurationError(f"No filebucket named '{bucket}' in {config_path}")
        return BucketRegistry.from_configs(selected).get(bucket)

    return make_bucket(BucketConfig(name="local", path=local))


# Shared bucket selection options
BucketOpt = typer.Option(None, "--bucket", "-b", help="Bucket name from the config file")
ConfigOpt = typer.Option(None, "--config", "-c", help="Bucket config file (default: $FILEBUCKET_CONFIG)")
LocalOpt = typer.Option(None, "--local", "-l", help="Local bucket directory")
ServerOpt = typer.Option(None, "--server", "-s", help="Remote bucket service host")
PortOpt = typer.Option(None, "--port", "-p", help=f"Remote bucket service port (default: {DEFAULT_PORT})")


@app.command()
def backup(
    files: List[Path] = typer.Argument(..., help="Files to back up"),
    bucket: Optional[str] = BucketOpt,
    config: Optional[Path] = ConfigOpt,
    local: Optional[Path] = LocalOpt,
    server: Optional[str] = ServerOpt,
    port: Optional[int] = PortOpt,
):
    """Store file contents and print their digests.

    Examples:
        filebucket backup /etc/hosts
        filebucket backup --server puppet.example.com /etc/motd
    """
    try:
        target = open_bucket(bucket, config, local, server, port)
        try:
            for path in files:
                try:
                    content = path.read_bytes()
                except OSError as e:
                    _fail(f"Cannot read {path}: {e}")
                digest = target.store(content, source_path=str(path.resolve()))
                typer.echo(f"{digest}  {path}")
        finally:
            target.close()
    except BucketError as e:
        _fail(str(e))


@app.command()
def restore(
    digest: str = typer.Argument(..., help="Digest printed by backup"),
    dest: Path = typer.Argument(..., help="File to write the content to"),
    bucket: Optional[str] = BucketOpt,
    config: Optional[Path] = ConfigOpt,
    local: Optional[Path] = LocalOpt,
    server: Optional[str] = ServerOpt,
    port: Optional[int] = PortOpt,
):
    """Write stored content back to a file (replacing it atomically)."""
    try:
        target = open_bucket(bucket, config, local, server, port)
        try:
            content = target.retrieve(digest)
        finally:
            target.close()
    except BucketError as e:
        _fail(str(e))

    dest = dest.resolve()
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmpname = tempfile.mkstemp(prefix=f".{dest.name}.", dir=str(dest.parent))
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmpname, str(dest))
        except Exception:
            with contextlib.suppress(OSError):
                os.unlink(tmpname)
            raise
    except OSError as e:
        _fail(f"Cannot write {dest}: {e}")

    console.print(f"[green]✓[/green] Restored {digest} to {dest} ({humanize_size(len(content))})")


@app.command()
def get(
    digest: str = typer.Argument(..., help="Digest printed by backup"),
    bucket: Optional[str] = BucketOpt,
    config: Optional[Path] = ConfigOpt,
    local: Optional[Path] = LocalOpt,
    server: Optional[str] = ServerOpt,
    port: Optional[int] = PortOpt,
):
    """Print stored content to stdout."""
    try:
        target = open_bucket(bucket, config, local, server, port)
        try:
            content = target.retrieve(digest)
        finally:
            target.close()
    except BucketError as e:
        _fail(str(e))
    typer.echo(content, nl=False)


@app.command()
def exists(
    digest: str = typer.Argument(..., help="Digest to look for"),
    bucket: Optional[str] = BucketOpt,
    config: Optional[Path] = ConfigOpt,
    local: Optional[Path] = LocalOpt,
    server: Optional[str] = ServerOpt,
    port: Optional[int] = PortOpt,
):
    """Exit 0 if the digest is stored, 1 otherwise."""
    try:
        target = open_bucket(bucket, config, local, server, port)
        try:
            found = target.exists(digest)
        finally:
            target.close()
    except BucketError as e:
        _fail(str(e))
    if not found:
        raise typer.Exit(1)


@app.command()
def info(
    digest: str = typer.Argument(..., help="Digest to describe"),
    bucket: Optional[str] = BucketOpt,
    config: Optional[Path] = ConfigOpt,
    local: Optional[Path] = LocalOpt,
    server: Optional[str] = ServerOpt,
    port: Optional[int] = PortOpt,
):
    """Show when content was first stored and where it came from."""
    try:
        target = open_bucket(bucket, config, local, server, port)
        try:
            entry = target.entry(digest)
        finally:
            target.close()
    except NotFoundError:
        _fail(f"Not stored: {digest}")
    except BucketError as e:
        _fail(str(e))

    console.print(f"[bold]{entry.digest}[/bold]")
    console.print(f"Size:    {humanize_size(entry.size)} ({entry.size} bytes)")
    console.print(f"Created: {format_iso_date(entry.created)}")

    if entry.sources:
        table = Table(title="Sources")
        table.add_column("Path", style="cyan")
        table.add_column("Recorded")
        for source in entry.sources:
            table.add_row(source.path, format_iso_date(source.recorded))
        console.print(table)
    else:
        console.print("[dim]No source paths recorded[/dim]")


@app.command()
def serve(
    path: Optional[Path] = typer.Option(None, "--path", help="Bucket directory (default: $FILEBUCKET_BUCKETDIR)"),
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to listen on"),
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", help="Port to listen on"),
):
    """Run a bucket service for remote clients."""
    try:
        service = BucketService.from_path(path, host=host, port=port)
    except BucketError as e:
        _fail(str(e))
    console.print(f"[green]✓[/green] Serving {service.store.root} on {host}:{port}")
    service.run()


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
