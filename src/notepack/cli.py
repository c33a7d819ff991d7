"""CLI interface for notepack."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from notepack import __version__
from notepack.builder.event_logger import log_store_configuration
from notepack.builder.packaging import archive_filename, attachment_headers, export_to_path
from notepack.builder.unpacking import import_from_path
from notepack.errors import NotePackError
from notepack.model.options import DEFAULT_PUBLIC_PREFIX, StoreOptions
from notepack.parser.references import extract_references, referenced_structured_ids
from notepack.store.assets import FileAssetStore
from notepack.store.documents import FileDocumentStore
from notepack.store.inventory import (
    clean_unreferenced,
    find_orphans,
    remove_structured_asset,
    scan_structured_assets,
)
from notepack.ui.progress import ProgressReporter

app = typer.Typer(
    name="notepack",
    help="Export Markdown notes with their uploaded images as ZIP archives, and import them back.",
    no_args_is_help=True,
)

UploadsOption = Annotated[
    Path,
    typer.Option(
        "--uploads",
        envvar="NOTEPACK_UPLOADS_PATH",
        help="Uploads directory of the asset store",
        file_okay=False,
    ),
]
PrefixOption = Annotated[
    str,
    typer.Option(
        "--prefix",
        envvar="NOTEPACK_PUBLIC_PREFIX",
        help="URL path under which uploads are served",
    ),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_time=False, show_path=False)],
        force=True,
    )


def _options(uploads: Path, prefix: str) -> StoreOptions:
    try:
        options = StoreOptions.from_cli(uploads=uploads, public_prefix=prefix)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    log_store_configuration(options)
    return options


@app.command("export")
def export_note(
    note: Annotated[
        Path,
        typer.Argument(
            help="Markdown note to export",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    uploads: UploadsOption = Path("uploads"),
    title: Annotated[
        str | None,
        typer.Option("--title", help="Note title (default: note file name)"),
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Archive path (default: <title>.zip next to the note)"),
    ] = None,
    prefix: PrefixOption = DEFAULT_PUBLIC_PREFIX,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Pack a note and every uploaded image it references into a ZIP archive."""
    _configure_logging(verbose)
    options = _options(uploads, prefix)
    title = title or note.stem
    out_path = out or note.parent / archive_filename(title)

    typer.echo(f"📄 Exporting note: {note}")
    typer.echo(f"📁 Uploads: {options.uploads_path}")

    try:
        with ProgressReporter() as pr:
            summary = export_to_path(
                note.read_text(encoding="utf-8"),
                title,
                out_path,
                FileAssetStore(options.uploads_path),
                options,
                on_progress=pr.emit,
            )
    except NotePackError as exc:
        typer.echo(f"❌ Export failed: {exc}", err=True)
        if exc.hint:
            typer.echo(f"   Hint: {exc.hint}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"📦 Assets: {len(summary.assets_added)}, sources: {len(summary.sources_added)}")
    for name in summary.assets_missing + summary.sources_missing:
        typer.echo(f"⚠️  Missing from store: {name}")
    typer.echo(f"🔗 Content-Disposition: {attachment_headers(title)['Content-Disposition']}")
    typer.echo(f"\n✅ Wrote {out_path}")


@app.command("import")
def import_note(
    archive: Annotated[
        Path,
        typer.Argument(
            help="Archive produced by `notepack export`",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    uploads: UploadsOption = Path("uploads"),
    notes: Annotated[
        Path,
        typer.Option(
            "--notes",
            envvar="NOTEPACK_NOTES_PATH",
            help="Directory receiving the imported note",
            file_okay=False,
        ),
    ] = Path("notes"),
    prefix: PrefixOption = DEFAULT_PUBLIC_PREFIX,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Import an exported archive as a new note with freshly named assets."""
    _configure_logging(verbose)
    options = _options(uploads, prefix)
    documents = FileDocumentStore(notes)

    with ProgressReporter() as pr:
        result = import_from_path(
            archive,
            FileAssetStore(options.uploads_path),
            documents,
            options,
            on_progress=pr.emit,
        )

    if not result.success:
        typer.echo(f"❌ Import failed: {result.reason}", err=True)
        if result.hint:
            typer.echo(f"   Hint: {result.hint}", err=True)
        raise typer.Exit(1)

    typer.echo(f"🆔 Document: {result.document_handle}")
    typer.echo(f"🖼️  Assets remapped: {len(result.mappings)}")
    for name in result.skipped:
        typer.echo(f"⚠️  Skipped: {name}")
    typer.echo(f"\n✅ Wrote {documents.path_for(str(result.document_handle))}")


@app.command()
def refs(
    note: Annotated[
        Path,
        typer.Argument(help="Markdown note to scan", exists=True, dir_okay=False, readable=True),
    ],
    prefix: PrefixOption = DEFAULT_PUBLIC_PREFIX,
) -> None:
    """List the uploaded files a note references."""
    found = extract_references(note.read_text(encoding="utf-8"), prefix)
    typer.echo(f"{len(found.occurrences)} reference(s), {len(found.distinct_files)} distinct file(s)")
    for record in found.distinct_files.values():
        suffix = f" (source: {record.structured_id})" if record.structured_id else ""
        typer.echo(f"  {record.category.value:8} {record.filename}{suffix}")


@app.command()
def orphans(
    uploads: UploadsOption = Path("uploads"),
    note: Annotated[
        list[Path] | None,
        typer.Option(
            "--note",
            help="Note to check references against (repeatable)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    prefix: PrefixOption = DEFAULT_PUBLIC_PREFIX,
    delete: Annotated[
        bool,
        typer.Option("--delete", help="Delete every structured asset no given note references"),
    ] = False,
) -> None:
    """Report diagrams and mind maps whose image and source are out of sync."""
    if delete and not note:
        typer.echo("Error: --delete needs at least one --note", err=True)
        raise typer.Exit(1)
    store = FileAssetStore(uploads)
    inventory = scan_structured_assets(store)
    referenced = None
    if note:
        referenced = referenced_structured_ids(
            [p.read_text(encoding="utf-8") for p in note], prefix
        )
    report = find_orphans(inventory, referenced)

    typer.echo(f"{len(inventory)} structured asset(s)")
    for entry in report.sources_without_image:
        typer.echo(f"  source only     {entry.source} ({entry.size} bytes)")
    for entry in report.images_without_source:
        typer.echo(f"  image only      {', '.join(entry.images)} ({entry.size} bytes)")
    for entry in report.unreferenced:
        typer.echo(f"  unreferenced    {entry.id_stem} ({entry.size} bytes)")

    if not delete or referenced is None:
        return
    cleanup = clean_unreferenced(store, inventory, referenced)
    for name in cleanup.deleted:
        typer.echo(f"🗑️  Deleted {name}")
    for stem in cleanup.failed:
        typer.echo(f"⚠️  Could not delete {stem}", err=True)
    typer.echo(f"\n✅ Deleted {len(cleanup.deleted)} file(s), freed {cleanup.freed_bytes} bytes")
    if cleanup.failed:
        raise typer.Exit(1)


@app.command()
def remove(
    id_stem: Annotated[str, typer.Argument(help="Structured asset id, e.g. drawio-<uuid>")],
    uploads: UploadsOption = Path("uploads"),
) -> None:
    """Delete one diagram or mind map: its source and every rendering."""
    try:
        cleanup = remove_structured_asset(FileAssetStore(uploads), id_stem)
    except NotePackError as exc:
        typer.echo(f"❌ Remove failed: {exc}", err=True)
        if exc.hint:
            typer.echo(f"   Hint: {exc.hint}", err=True)
        raise typer.Exit(1) from exc
    for name in cleanup.deleted:
        typer.echo(f"🗑️  Deleted {name}")
    typer.echo(f"\n✅ Freed {cleanup.freed_bytes} bytes")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"notepack version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"notepack version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    notepack - portable archives for Markdown notes and their uploads.

    Export bundles the note, its uploaded images and the draw.io / mind map
    sources behind them. Import restores the note under freshly minted asset
    ids so it never clashes with files already in the store.
    """
    pass


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
