"""Command-line interface for uploading a directory of bird photos."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from birdsync.albums import AlbumDirectory
from birdsync.auth import AuthManager
from birdsync.config import CREDENTIALS_FILE, SPREADSHEET_NAME, TOKEN_FILE, UploadOptions
from birdsync.errors import MetadataError, PhotoServiceError
from birdsync.google_photos_api import GooglePhotosService
from birdsync.log import init_logging
from birdsync.metadata import load_metadata
from birdsync.photos import check_photos, report_invalid, valid_photos
from birdsync.uploader import UploadReport, Uploader

app = typer.Typer(help="Upload bird photos to Google Photos, tagged and sorted into albums.")


def _print_summary(report: UploadReport, dry_run: bool) -> None:
    if dry_run:
        typer.echo("Dry run - nothing was uploaded.")
    typer.echo(
        f"Uploaded {len(report.uploaded)} photos, created {len(report.albums_created)} albums, "
        f"reordered {len(report.reordered)} of {len(report.reorder_candidates)} albums."
    )
    for name, message in report.failures:
        typer.echo(f"FAILED: {name}: {message}")


@app.command()
def upload(
    directory: Path = typer.Argument(
        ..., exists=True, file_okay=False, dir_okay=True, help="Upload directory"
    ),
    auth_tokens: Path = typer.Option(
        TOKEN_FILE, "--auth-tokens", "-a", help="OAuth token file"
    ),
    credentials: Path = typer.Option(
        CREDENTIALS_FILE, "--credentials", help="OAuth client secrets, used when there is no token yet"
    ),
    spreadsheet: Optional[Path] = typer.Option(
        None, "--spreadsheet", "-s", help=f"Names spreadsheet (default: DIRECTORY/{SPREADSHEET_NAME})"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Do not actually upload (not an accurate simulation)"
    ),
    tags_root: bool = typer.Option(
        False, "--tags-root", "-t", help="Root directory has tag codes instead of bird codes"
    ),
    check: bool = typer.Option(False, "--check", "-c", help="Check if all files are valid"),
    debug: bool = typer.Option(False, "--debug", "-D", help="Debug output"),
) -> None:
    """Upload every photo under DIRECTORY/<bird code>/<tag code>/."""
    options = UploadOptions(dry_run=dry_run, tags_root=tags_root, check=check, debug=debug)
    init_logging(debug=options.debug)

    try:
        metadata = load_metadata(spreadsheet or directory / SPREADSHEET_NAME)
    except MetadataError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    records = check_photos(directory, metadata, options)
    if not report_invalid(records):
        raise typer.Exit(code=1)

    # If checking, exit here
    if options.check:
        typer.echo("All OK")
        return

    auth = AuthManager(auth_tokens, credentials)
    if not auth.can_authenticate():
        typer.echo(f"Unable to find OAuth token file {auth_tokens} or client secrets {credentials}")
        raise typer.Exit(code=1)
    service = GooglePhotosService(auth.authenticate())

    albums = AlbumDirectory(service)
    try:
        albums.fetch_all()
    except PhotoServiceError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    report = Uploader(service, albums, options).run(valid_photos(records))
    _print_summary(report, options.dry_run)
    if not report.ok:
        raise typer.Exit(code=1)


def main() -> None:
    app()
