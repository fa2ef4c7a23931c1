"""ZIP archive extraction: filter to markdown entries and split front matter"""

import io
import logging
import zipfile
import zlib
from pathlib import PurePosixPath

from mdblog.core.errors import ArchiveError, EntryDecodeError
from mdblog.core.frontmatter import parse_front_matter
from mdblog.core.models import ParsedMarkdownFile, ValidationResult, ZipParseResult


logger = logging.getLogger(__name__)

MD_EXTENSIONS = {'.md', '.markdown'}
IGNORED_FRAGMENTS = ('__macosx', '.ds_store', 'thumbs.db')

MAX_ARCHIVE_BYTES = 100 * 1024 * 1024
MAX_ARCHIVE_ENTRIES = 1000


def is_markdown_file(path: str) -> bool:
    return PurePosixPath(path.lower()).suffix in MD_EXTENSIONS


def should_ignore_file(path: str) -> bool:
    """True for macOS metadata, Windows thumbnails, .DS_Store and ._ resource forks."""
    lowered = path.lower()
    if any(fragment in lowered for fragment in IGNORED_FRAGMENTS):
        return True
    return PurePosixPath(path).name.startswith('._')


def folder_path(path: str) -> str:
    """All path segments except the last, '/'-joined ('' for root-level entries)."""
    return '/'.join(path.split('/')[:-1])


def entry_name(info: zipfile.ZipInfo) -> str:
    """Entry path, re-decoded as UTF-8 when the archive did not set the UTF-8 name flag."""
    if info.flag_bits & 0x800:
        return info.filename
    try:
        return info.filename.encode('cp437').decode('utf-8')
    except (UnicodeEncodeError, UnicodeDecodeError):
        return info.filename


def _open_archive(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
        raise ArchiveError(f"Failed to parse ZIP file: {e}") from e


def _markdown_entries(archive: zipfile.ZipFile) -> list[zipfile.ZipInfo]:
    return [
        info for info in archive.infolist()
        if not info.is_dir() and not should_ignore_file(info.filename) and is_markdown_file(info.filename)
    ]


def _read_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> ParsedMarkdownFile:
    """Decode one entry as UTF-8 and split it. Raises EntryDecodeError on any read/decode failure."""
    try:
        content = archive.read(info).decode('utf-8')
    except (UnicodeDecodeError, zipfile.BadZipFile, zlib.error, RuntimeError, OSError, EOFError) as e:
        raise EntryDecodeError(info.filename, e) from e

    path = entry_name(info)
    front_matter, body = parse_front_matter(content)
    return ParsedMarkdownFile(
        filename=PurePosixPath(path).name,
        content=content,
        front_matter=front_matter,
        body=body,
        relative_path=path,
        folder_path=folder_path(path),
    )


def parse_markdown_text(filename: str, content: str) -> ParsedMarkdownFile:
    """Wrap a directly uploaded markdown document as a root-level ParsedMarkdownFile."""
    front_matter, body = parse_front_matter(content)
    return ParsedMarkdownFile(
        filename=filename,
        content=content,
        front_matter=front_matter,
        body=body,
        relative_path=filename,
        folder_path='',
    )


def parse_zip_file(data: bytes) -> ZipParseResult:
    """Extract every markdown entry from a ZIP archive.

    Entries that fail to decode are recorded in `errors` and dropped; only an
    archive that cannot be opened at all raises ArchiveError.
    """
    with _open_archive(data) as archive:
        total_entries = len(archive.infolist())
        logger.info("ZIP loaded: %d bytes, %d entries", len(data), total_entries)

        files: list[ParsedMarkdownFile] = []
        errors: list[str] = []
        for info in _markdown_entries(archive):
            try:
                files.append(_read_entry(archive, info))
            except EntryDecodeError as e:
                logger.warning("Skipping archive entry: %s", e)
                errors.append(str(e))

    logger.info("Parsed %d markdown files", len(files))
    return ZipParseResult(
        markdown_files=files,
        total_files=len(files),
        total_entries=total_entries,
        errors=errors,
    )


def validate_zip_file(
    data: bytes,
    filename: str = '',
    content_type: str | None = None,
    max_bytes: int = MAX_ARCHIVE_BYTES,
    max_entries: int = MAX_ARCHIVE_ENTRIES,
    ) -> ValidationResult:
    """Pre-check an uploaded archive, collecting every violation rather than raising."""
    errors: list[str] = []

    if len(data) > max_bytes:
        errors.append(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")

    if 'zip' not in (content_type or '') and not filename.lower().endswith('.zip'):
        errors.append("File must be a ZIP archive")

    try:
        with _open_archive(data) as archive:
            if not _markdown_entries(archive):
                errors.append("ZIP file must contain at least one markdown file")
            file_count = sum(1 for info in archive.infolist() if not info.is_dir())
            if file_count > max_entries:
                errors.append(f"ZIP file contains too many files (max {max_entries})")
    except ArchiveError:
        errors.append("Invalid ZIP file or corrupted")

    return ValidationResult(valid=not errors, errors=errors)
