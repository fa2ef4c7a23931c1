"""Turn parsed markdown files into candidate posts; clamp and validate them"""

import re
import time
from datetime import datetime

from mdblog.core.models import FrontMatter, FrontMatterValue, ParsedMarkdownFile, ParsedPost, ValidationResult
from mdblog.core.utils.dates import now_iso, parse_date, to_iso
from mdblog.core.utils.excerpt import DEFAULT_EXCERPT_LENGTH, generate_excerpt
from mdblog.core.utils.language import SUPPORTED_LANGUAGES
from mdblog.core.utils.slug import MAX_SLUG_LENGTH, MIN_SLUG_LENGTH, SLUG_RE, generate_slug, is_valid_slug


CREATED_FIELDS = ('date', 'created', 'created_at', 'published')
UPDATED_FIELDS = ('updated', 'updated_at', 'modified', 'lastmod')
TAG_FIELDS = ('tags', 'categories', 'keywords')

NOTE_LENGTH_THRESHOLD = 500
SLUG_SOURCE_LENGTH = 50

MAX_CONTENT_LENGTH = 100_000
MAX_TITLE_LENGTH = 200
MAX_EXCERPT_LENGTH = 500
MAX_TAGS = 20
MAX_TAG_LENGTH = 50

_H1_RE = re.compile(r'^#[ \t]+(.+)$', re.MULTILINE)
_FILENAME_DATE_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})')
_DAY_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_MONTH_RE = re.compile(r'^(\d{4})-(\d{2})$')
_YEAR_RE = re.compile(r'^(\d{4})$')


def fallback_slug() -> str:
    return f"imported-{time.time_ns() // 1_000_000}"


def _text(value: FrontMatterValue | None) -> str | None:
    """Front-matter value as a non-empty string, or None for absent/empty/false values."""
    if value is None or value is False or value == '' or value == []:
        return None
    if isinstance(value, list):
        return ', '.join(value)
    return str(value)


def extract_title(body: str) -> str | None:
    """First '# ' heading, else the first line of 6-99 chars that is not a sub-heading."""
    m = _H1_RE.search(body)
    if m:
        return m.group(1).strip()
    for line in body.split('\n'):
        stripped = line.strip()
        if 5 < len(stripped) < 100 and not stripped.startswith('##'):
            return stripped
    return None


def _date_from_path(path: str) -> datetime | None:
    """Date from a YYYY-MM-DD filename prefix, else the first dated folder segment."""
    filename = path.split('/')[-1]
    m = _FILENAME_DATE_RE.match(filename)
    if m and (parsed := parse_date(m.group(1))):
        return parsed

    for part in path.split('/'):
        if m := _DAY_RE.match(part):
            candidate = f"{m.group(1)}-{m.group(2)}-{m.group(3)}"
        elif m := _MONTH_RE.match(part):
            candidate = f"{m.group(1)}-{m.group(2)}-01"
        elif m := _YEAR_RE.match(part):
            candidate = f"{m.group(1)}-01-01"
        else:
            continue
        if parsed := parse_date(candidate):
            return parsed
    return None


def extract_created_date(front_matter: FrontMatter, path: str) -> str:
    for name in CREATED_FIELDS:
        if _text(front_matter.get(name)) and (parsed := parse_date(front_matter[name])):
            return to_iso(parsed)
    parsed = _date_from_path(path)
    return to_iso(parsed) if parsed else now_iso()


def extract_updated_date(front_matter: FrontMatter, created_at: str) -> str | None:
    for name in UPDATED_FIELDS:
        if _text(front_matter.get(name)) and (parsed := parse_date(front_matter[name])):
            iso = to_iso(parsed)
            if iso != created_at:
                return iso
    return None


def extract_tags(front_matter: FrontMatter) -> list[str]:
    """Tags from the first present tags/categories/keywords field (list or ,/; separated)."""
    for name in TAG_FIELDS:
        value = front_matter.get(name)
        if not value:
            continue
        if isinstance(value, list):
            return [t for t in (str(tag).strip() for tag in value) if t]
        if isinstance(value, str):
            return [t for t in (tag.strip() for tag in re.split(r'[,;]', value)) if t]
    return []


def _slug_language(front_matter: FrontMatter) -> str | None:
    language = front_matter.get('language')
    return language if language in SUPPORTED_LANGUAGES else None


def derive_slug(front_matter: FrontMatter, title: str | None, content: str) -> tuple[str, list[str]]:
    """Front-matter slug, else slug of the title, else of the first 50 body chars.

    Returns (slug, notes); a fallback imported-<millis> slug is substituted (with a
    note) when nothing usable of at least 3 characters can be derived.
    """
    language = _slug_language(front_matter)
    slug = _text(front_matter.get('slug'))
    if slug and not is_valid_slug(slug):
        slug = generate_slug(slug, language)
    if not slug:
        slug = generate_slug(title, language) if title else generate_slug(content[:SLUG_SOURCE_LENGTH], language)

    if not slug or len(slug) < MIN_SLUG_LENGTH:
        return fallback_slug(), ["Generated fallback slug due to invalid original slug"]
    return slug, []


def process_markdown_file(file: ParsedMarkdownFile, excerpt_length: int = DEFAULT_EXCERPT_LENGTH) -> ParsedPost:
    """Derive a candidate post from one markdown file, filling missing fields by policy."""
    fm = file.front_matter
    content = file.body or ''
    title = _text(fm.get('title')) or extract_title(content)

    if _text(fm.get('type')):
        post_type = 'note' if fm['type'] == 'note' else 'article'
    else:
        post_type = 'note' if (not title or len(content) < NOTE_LENGTH_THRESHOLD) else 'article'

    slug, errors = derive_slug(fm, title, content)
    created_at = extract_created_date(fm, file.relative_path)

    excerpt = _text(fm.get('excerpt'))
    if not excerpt and post_type == 'article' and content:
        excerpt = generate_excerpt(content, excerpt_length)

    return ParsedPost(
        title=title,
        content=content,
        excerpt=excerpt,
        slug=slug,
        type=post_type,
        status='draft' if fm.get('status') == 'draft' else 'published',
        language=_text(fm.get('language')) or 'auto',
        tags=extract_tags(fm),
        created_at=created_at,
        updated_at=extract_updated_date(fm, created_at),
        original_path=file.relative_path,
        errors=errors,
    )


def normalize_post(post: ParsedPost) -> ParsedPost:
    """Pure clamp/trim pass: titles, excerpts and tags are truncated, never rejected."""
    title = (post.title or '').strip()[:MAX_TITLE_LENGTH]
    excerpt = (post.excerpt or '').strip()[:MAX_EXCERPT_LENGTH]
    tags = [t for t in (tag.strip()[:MAX_TAG_LENGTH] for tag in post.tags) if t]
    return post.model_copy(update={
        'title': title or None,
        'content': post.content.strip(),
        'excerpt': excerpt or None,
        'slug': post.slug.strip().lower(),
        'tags': tags[:MAX_TAGS],
    })


def validate_post(post: ParsedPost) -> ValidationResult:
    """Check every content constraint and report all violations together."""
    errors: list[str] = []

    if not post.content or not post.content.strip():
        errors.append("Content is required")

    if not post.slug or len(post.slug) < MIN_SLUG_LENGTH:
        errors.append(f"Slug must be at least {MIN_SLUG_LENGTH} characters")
    if len(post.slug) > MAX_SLUG_LENGTH:
        errors.append(f"Slug exceeds maximum length ({MAX_SLUG_LENGTH} characters)")
    if not SLUG_RE.match(post.slug):
        errors.append("Slug contains invalid characters")

    if len(post.content) > MAX_CONTENT_LENGTH:
        errors.append(f"Content exceeds maximum length ({MAX_CONTENT_LENGTH:,} characters)")

    if post.type == 'article' and not (post.title or '').strip():
        errors.append("Articles require a title")
    if post.title and len(post.title) > MAX_TITLE_LENGTH:
        errors.append(f"Title exceeds maximum length ({MAX_TITLE_LENGTH} characters)")

    if len(post.tags) > MAX_TAGS:
        errors.append(f"Too many tags (maximum {MAX_TAGS})")
    for tag in post.tags:
        if len(tag) > MAX_TAG_LENGTH:
            errors.append(f'Tag "{tag}" exceeds maximum length ({MAX_TAG_LENGTH} characters)')

    return ValidationResult(valid=not errors, errors=errors)
