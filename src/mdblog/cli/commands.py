"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdblog.config import Settings, load_config
from mdblog.core.errors import ArchiveError, UploadError
from mdblog.core.export import (
    create_zip_from_posts, export_filename, export_posts_json,
    generate_markdown_content, load_export_post, load_export_posts,
)
from mdblog.core.frontmatter import parse_front_matter
from mdblog.core.models import ImportOptions, ParsedMarkdownFile
from mdblog.core.pipeline import import_posts, load_upload, preview_import, process_markdown_files
from mdblog.core.render import render_markdown
from mdblog.crud.database import init_db, make_engine, reset_db, session_scope
from mdblog.crud.sql_repo import SQLRepo


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.secho(f"Error: {msg}", err=True, fg=typer.colors.RED)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling and configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    return settings


def _load_files(path: str, settings: Settings) -> tuple[list[ParsedMarkdownFile], list[str]]:
    """Read an uploaded .md/.markdown/.zip file from disk into (files, entry errors)."""
    p = Path(path)
    if not p.is_file():
        _fail(f"File not found: {path}")
    try:
        return load_upload(
            p.name, p.read_bytes(),
            max_bytes=settings.max_archive_bytes,
            max_entries=settings.max_archive_entries,
        )
    except UploadError as e:
        typer.secho(f"Error: {e}", err=True, fg=typer.colors.RED)
        for detail in e.details:
            typer.echo(f"  {detail}", err=True)
        raise typer.Exit(1)
    except ArchiveError as e:
        _fail(str(e))


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def preview_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or ZIP archive to inspect")],
    limit: Annotated[Optional[int], typer.Option("--limit", help="Valid posts to list")] = None,
    ):
    """Show what an import would do without writing to the database."""
    settings = _settings(overrides={"preview_limit": limit})
    files, errors = _load_files(path, settings)
    engine = make_engine(settings.db_url)
    init_db(engine)

    with session_scope(engine) as session:
        preview = preview_import(SQLRepo(session), files, settings.preview_limit, settings.excerpt_length, errors)

    typer.echo(f"Files: {preview.total_files}, valid: {preview.valid_posts}, invalid: {preview.invalid_posts}")
    for post in preview.posts:
        typer.echo(f"  {post.type:<8} {post.status:<9} {post.slug}  {post.title or ''}")
    if preview.more_available:
        typer.echo(f"  ... and {preview.valid_posts - len(preview.posts)} more")
    for conflict in preview.conflicts:
        typer.echo(f"  conflict: {conflict}")
    for error in preview.errors:
        typer.echo(f"  error: {error}")
    stats = preview.statistics
    typer.echo(
        f"Articles: {stats.articles}, notes: {stats.notes}, "
        f"published: {stats.published}, drafts: {stats.drafts}, tags: {stats.unique_tags}"
    )


def import_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file or ZIP archive to import")],
    overwrite: Annotated[bool, typer.Option("--overwrite", help="Replace posts whose slug already exists")] = False,
    no_create_tags: Annotated[bool, typer.Option("--no-create-tags", help="Drop tags not already in the database")] = False,
    ):
    """Import posts from a markdown file or ZIP archive."""
    settings = _settings(overrides={
        "overwrite_existing": True if overwrite else None,
        "create_missing_tags": False if no_create_tags else None,
    })
    files, errors = _load_files(path, settings)
    engine = make_engine(settings.db_url)
    init_db(engine)

    summary = process_markdown_files(files, settings.excerpt_length, errors)
    for conflict in summary.conflicts:
        typer.echo(f"  renamed: {conflict}")

    options = ImportOptions(
        overwrite_existing=settings.overwrite_existing,
        create_missing_tags=settings.create_missing_tags,
    )
    try:
        with session_scope(engine) as session:
            result = import_posts(SQLRepo(session), summary.posts, options)
    except Exception as e:
        _fail("Import failed", e)

    for error in summary.errors + result.errors:
        typer.echo(f"  error: {error}")
    typer.echo(
        f"Import complete - "
        f"{result.imported} imported, "
        f"{result.overwritten} overwritten, "
        f"{result.skipped} skipped, "
        f"{result.new_tags} new tags"
    )


def export_cmd(
    type: Annotated[Optional[str], typer.Option("--type", help="article or note")] = None,
    status: Annotated[Optional[str], typer.Option("--status", help="draft or published")] = None,
    fmt: Annotated[str, typer.Option("--format", help="zip or json")] = "zip",
    out: Annotated[Optional[str], typer.Option("--out", help="Output file (default: generated name)")] = None,
    limit: Annotated[Optional[int], typer.Option("--limit", help="Most posts to export")] = None,
    post_id: Annotated[Optional[int], typer.Option("--id", help="Export only the post with this id as markdown")] = None,
    slug: Annotated[Optional[str], typer.Option("--slug", help="Export only the post with this slug as markdown")] = None,
    ):
    """Export posts to a ZIP of markdown files or a JSON document, or one post as markdown."""
    if post_id is not None or slug:
        _export_single(post_id, slug, out)
        return
    if fmt not in ("zip", "json"):
        _fail(f"Unsupported format: {fmt}")
    if type and type not in ("article", "note"):
        _fail(f"Unsupported type: {type}")
    if status and status not in ("draft", "published"):
        _fail(f"Unsupported status: {status}")
    settings = _settings(overrides={"export_limit": limit})
    engine = make_engine(settings.db_url)
    init_db(engine)

    with session_scope(engine) as session:
        posts = load_export_posts(SQLRepo(session), type, status, settings.export_limit)
    if not posts:
        typer.echo("No posts found to export.")
        raise typer.Exit(1)

    out_path = Path(out or export_filename(type, status, fmt))
    try:
        if fmt == "zip":
            out_path.write_bytes(create_zip_from_posts(posts))
        else:
            out_path.write_text(export_posts_json(posts, type, status), encoding="utf-8")
    except OSError as e:
        _fail("Export failed", e)
    typer.echo(f"Exported {len(posts)} post(s) to {out_path}")


def _export_single(post_id: int | None, slug: str | None, out: str | None) -> None:
    """Write one post as a front-matter markdown document to <slug>.md (or --out)."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)

    with session_scope(engine) as session:
        post = load_export_post(SQLRepo(session), post_id=post_id, slug=slug)
    if post is None:
        _fail(f"Post not found: {post_id if post_id is not None else slug}")

    out_path = Path(out or f"{post['slug']}.md")
    try:
        out_path.write_text(generate_markdown_content(post), encoding="utf-8")
    except OSError as e:
        _fail("Export failed", e)
    typer.echo(f"Exported post {post['slug']} to {out_path}")


def list_cmd(
    type: Annotated[Optional[str], typer.Option("--type", help="article or note")] = None,
    status: Annotated[Optional[str], typer.Option("--status", help="draft or published")] = None,
    ):
    """List stored posts, newest first."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine)
    with session_scope(engine) as session:
        rows = [
            (p.created_at, p.type, p.status, p.slug, p.title)
            for p in SQLRepo(session).find_posts(type=type, status=status)
        ]
    if not rows:
        typer.echo("No posts found in database.")
        raise typer.Exit(1)
    for created_at, post_type, post_status, slug, title in rows:
        typer.echo(f"{created_at:%Y-%m-%d}  {post_type:<8} {post_status:<9} {slug}  {title or ''}")


def render_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to render")],
    ):
    """Render a markdown file's body (front matter removed) to HTML on stdout."""
    _settings()
    p = Path(path)
    if not p.is_file():
        _fail(f"File not found: {path}")
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        _fail(f"Cannot decode {path}", e)
    _, body = parse_front_matter(text)
    typer.echo(render_markdown(body))
