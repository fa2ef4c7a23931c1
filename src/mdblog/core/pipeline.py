"""Import orchestration: batch processing, conflict checks, preview and commit to storage"""

import logging
import time
from datetime import datetime
from pathlib import PurePosixPath

from mdblog.core.archive import (
    MAX_ARCHIVE_BYTES, MAX_ARCHIVE_ENTRIES,
    parse_markdown_text, parse_zip_file, validate_zip_file,
)
from mdblog.core.errors import ConflictError, PersistenceError, PostValidationError, UploadError
from mdblog.core.models import (
    ImportOptions, ImportPreview, ImportResult, ImportStatistics,
    ImportSummary, ParsedMarkdownFile, ParsedPost,
)
from mdblog.core.normalize import normalize_post, process_markdown_file, validate_post
from mdblog.core.utils.dates import parse_date
from mdblog.core.utils.excerpt import DEFAULT_EXCERPT_LENGTH
from mdblog.core.utils.language import SUPPORTED_LANGUAGES
from mdblog.core.utils.slug import MAX_SLUG_LENGTH, generate_slug
from mdblog.crud.models import PostData, Tag
from mdblog.crud.repo import PostRepo


logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_LIMIT = 10


def _millis() -> int:
    return time.time_ns() // 1_000_000


def _renamed_slug(slug: str, taken: set[str]) -> str:
    """slug-<millis>, bumping the number until it is free and trimming slug to fit."""
    stamp = _millis()
    while True:
        suffix = f"-{stamp}"
        candidate = slug[:MAX_SLUG_LENGTH - len(suffix)].rstrip('-') + suffix
        if candidate not in taken:
            return candidate
        stamp += 1


def _label(post: ParsedPost) -> str:
    return post.original_path or post.slug


def process_markdown_files(
    files: list[ParsedMarkdownFile],
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    errors: list[str] | None = None,
    ) -> ImportSummary:
    """Derive one candidate post per file and make slugs unique within the batch.

    A file that raises is recorded in `errors` and dropped; it never aborts the batch.
    `errors` may be seeded with failures from an earlier stage (e.g. archive extraction).
    """
    posts: list[ParsedPost] = []
    conflicts: list[str] = []
    errors = list(errors or [])
    seen: set[str] = set()

    for file in files:
        try:
            post = process_markdown_file(file, excerpt_length)
        except Exception as e:
            logger.error("Failed to process %s: %s", file.relative_path, e)
            errors.append(f"Failed to process {file.relative_path}: {e}")
            continue

        if post.slug in seen:
            conflicts.append(f"Duplicate slug: {post.slug} ({file.relative_path})")
            post = post.model_copy(update={'slug': _renamed_slug(post.slug, seen)})
        seen.add(post.slug)

        errors.extend(f"{file.relative_path}: {note}" for note in post.errors)
        posts.append(post)

    logger.info("Processed %d files: %d posts, %d conflicts", len(files), len(posts), len(conflicts))
    return ImportSummary(
        total_files=len(files),
        valid_posts=len(posts),
        posts=posts,
        conflicts=conflicts,
        errors=errors,
    )


def check_for_conflicts(repo: PostRepo, posts: list[ParsedPost]) -> list[str]:
    """Describe every candidate whose slug is already taken in storage."""
    existing = {p.slug for p in repo.find_all_posts()}
    return [
        f"Slug already exists: {post.slug} ({_label(post)})"
        for post in posts if post.slug in existing
    ]


def _statistics(posts: list[ParsedPost]) -> ImportStatistics:
    return ImportStatistics(
        articles=sum(1 for p in posts if p.type == 'article'),
        notes=sum(1 for p in posts if p.type == 'note'),
        published=sum(1 for p in posts if p.status == 'published'),
        drafts=sum(1 for p in posts if p.status == 'draft'),
        unique_tags=len({t for p in posts for t in p.tags}),
    )


def preview_import(
    repo: PostRepo,
    files: list[ParsedMarkdownFile],
    limit: int = DEFAULT_PREVIEW_LIMIT,
    excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    errors: list[str] | None = None,
    ) -> ImportPreview:
    """Report what importing files would do without writing anything."""
    summary = process_markdown_files(files, excerpt_length, errors)
    conflicts = summary.conflicts + check_for_conflicts(repo, summary.posts)

    valid: list[ParsedPost] = []
    errors = list(summary.errors)
    invalid = 0
    for post in summary.posts:
        normalized = normalize_post(post)
        result = validate_post(normalized)
        if result.valid:
            valid.append(normalized)
        else:
            invalid += 1
            errors.extend(f"{_label(post)}: {err}" for err in result.errors)

    return ImportPreview(
        total_files=summary.total_files,
        valid_posts=len(valid),
        invalid_posts=invalid,
        posts=valid[:limit],
        more_available=len(valid) > limit,
        conflicts=conflicts,
        errors=errors,
        statistics=_statistics(valid),
    )


def _naive_utc(value: str | None) -> datetime | None:
    parsed = parse_date(value)
    return parsed.replace(tzinfo=None) if parsed else None


def _post_data(post: ParsedPost, created_at: datetime, updated_at: datetime) -> PostData:
    return PostData(
        title=post.title,
        content=post.content,
        excerpt=post.excerpt,
        slug=post.slug,
        type=post.type,
        status=post.status,
        language=post.language if post.language in SUPPORTED_LANGUAGES else 'auto',
        created_at=created_at,
        updated_at=updated_at,
        published_at=created_at if post.status == 'published' else None,
    )


def _tag_slug(name: str, tag_cache: dict[str, Tag]) -> str:
    slug = generate_slug(name) or f"tag-{_millis()}"
    taken = {t.slug for t in tag_cache.values()}
    return _renamed_slug(slug, taken) if slug in taken else slug


def _resolve_tags(
    repo: PostRepo,
    post: ParsedPost,
    tag_cache: dict[str, Tag],
    options: ImportOptions,
    result: ImportResult,
    ) -> list[int]:
    """Map tag names to ids, creating missing tags when allowed.

    Distinct names that slugify alike (`C++`, `C#`) get a -<millis> suffix on the
    later slug. A failed create is retried once as a lookup (another writer may
    have won the race); only if that also misses is the tag dropped with an error.
    """
    tag_ids: list[int] = []
    for name in dict.fromkeys(post.tags):
        key = name.lower()
        tag = tag_cache.get(key)
        if tag is None and options.create_missing_tags:
            try:
                tag = repo.create_tag(name, _tag_slug(name, tag_cache))
                result.new_tags += 1
            except PersistenceError as e:
                logger.warning("Tag create failed for %r, retrying lookup: %s", name, e)
                tag = repo.get_tag_by_name(name)
                if tag is None:
                    result.errors.append(f'{_label(post)}: Failed to create tag "{name}"')
                    continue
            tag_cache[key] = tag
        if tag is not None:
            tag_ids.append(tag.id)
    return tag_ids


def import_posts(
    repo: PostRepo,
    posts: list[ParsedPost],
    options: ImportOptions | None = None,
    ) -> ImportResult:
    """Commit candidate posts to storage under the skip/overwrite policy.

    Existing slugs and tags are read once up front; tags created during the batch
    are visible to later posts, posts created during the batch are not.
    """
    options = options or ImportOptions()
    result = ImportResult()
    existing = {p.slug: p for p in repo.find_all_posts()}
    tag_cache = {t.name.lower(): t for t in repo.find_all_tags()}
    logger.info("Importing %d posts (%d existing, %d tags)", len(posts), len(existing), len(tag_cache))

    for post in posts:
        try:
            normalized = normalize_post(post)
            validation = validate_post(normalized)
            if not validation.valid:
                raise PostValidationError(validation.errors)

            current = existing.get(normalized.slug)
            if current is not None and not options.overwrite_existing:
                raise ConflictError(normalized.slug)

            tag_ids = _resolve_tags(repo, normalized, tag_cache, options, result)
            created_at = _naive_utc(normalized.created_at) or datetime.utcnow()

            if current is not None:
                now = datetime.utcnow()
                repo.update_post(current.id, _post_data(normalized, current.created_at, now), tag_ids)
                result.overwritten += 1
            else:
                updated_at = _naive_utc(normalized.updated_at) or created_at
                repo.create_post(_post_data(normalized, created_at, updated_at), tag_ids)
                result.imported += 1
        except PostValidationError as e:
            result.errors.append(f"{_label(post)}: {', '.join(e.errors)}")
            result.skipped += 1
        except ConflictError as e:
            result.errors.append(f"{_label(post)}: {e} (skipped)")
            result.skipped += 1
        except Exception as e:
            logger.error("Failed to import %s: %s", _label(post), e)
            result.errors.append(f"{_label(post)}: {e}")
            result.skipped += 1

    logger.info(
        "Import finished: %d imported, %d overwritten, %d skipped, %d new tags",
        result.imported, result.overwritten, result.skipped, result.new_tags,
    )
    return result


def load_upload(
    filename: str,
    data: bytes | None,
    content_type: str | None = None,
    max_bytes: int = MAX_ARCHIVE_BYTES,
    max_entries: int = MAX_ARCHIVE_ENTRIES,
    ) -> tuple[list[ParsedMarkdownFile], list[str]]:
    """Turn one uploaded file (markdown document or ZIP archive) into markdown files.

    Returns (files, errors); `errors` lists archive entries that could not be decoded.
    Raises UploadError for missing input, unsupported types, failed archive checks
    or an upload without markdown; ArchiveError if the archive cannot be opened.
    """
    if not filename or data is None:
        raise UploadError("No file provided")

    suffix = PurePosixPath(filename.lower()).suffix
    if suffix in ('.md', '.markdown'):
        try:
            files, errors = [parse_markdown_text(PurePosixPath(filename).name, data.decode('utf-8'))], []
        except UnicodeDecodeError as e:
            raise UploadError("No valid markdown files found", [f"Failed to decode {filename}: {e}"]) from e
    elif suffix == '.zip':
        validation = validate_zip_file(data, filename, content_type, max_bytes, max_entries)
        if not validation.valid:
            raise UploadError("Invalid ZIP file", validation.errors)
        parsed = parse_zip_file(data)
        files, errors = parsed.markdown_files, parsed.errors
    else:
        raise UploadError("File must be a ZIP archive or markdown file")

    if not files:
        raise UploadError("No valid markdown files found", errors)
    return files, errors
