"""Export pipeline: rebuild front-matter documents and package posts as ZIP or JSON"""

import io
import json
import logging
import zipfile
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from mdblog.core.frontmatter import parse_value
from mdblog.core.utils.dates import normalize_date, now_iso, year_month
from mdblog.core.utils.slug import generate_slug
from mdblog.crud.repo import PostRepo


logger = logging.getLogger(__name__)

DEFAULT_EXPORT_LIMIT = 1000


def _field(post: Any, name: str, default: Any = None) -> Any:
    """Read a field from a mapping or an attribute-style record."""
    if isinstance(post, Mapping):
        value = post.get(name, default)
    else:
        value = getattr(post, name, default)
    return default if value is None else value


def _tag_name(tag: Any) -> str:
    return str(_field(tag, 'name') or tag) if not isinstance(tag, str) else tag


def _needs_quotes(value: str) -> bool:
    """True if the value would not read back as the same plain string."""
    if ':' in value or '\n' in value or value != value.strip():
        return True
    return parse_value(value) != value


def _quote(value: str) -> str:
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


def _format_line(key: str, value: Any) -> str:
    if isinstance(value, list):
        return f"{key}: [{', '.join(_quote(str(v)) for v in value)}]"
    value = str(value)
    return f"{key}: {_quote(value) if _needs_quotes(value) else value}"


def generate_markdown_content(post: Any) -> str:
    """Front-matter block (title, type, dates, status, slug, tags, excerpt, language) plus the raw content."""
    created = normalize_date(_field(post, 'created_at'))
    updated = normalize_date(_field(post, 'updated_at'))
    post_type = _field(post, 'type', 'article')

    fields: dict[str, Any] = {
        'title':   _field(post, 'title') or None,
        'type':    post_type,
        'date':    created,
        'updated': updated if updated and updated != created else None,
        'status':  _field(post, 'status', 'published'),
        'slug':    _field(post, 'slug'),
    }
    tags = [_tag_name(t) for t in _field(post, 'tags', [])]
    if tags:
        fields['tags'] = tags
    if post_type == 'article' and _field(post, 'excerpt'):
        fields['excerpt'] = _field(post, 'excerpt')
    language = _field(post, 'language', 'auto')
    if language != 'auto':
        fields['language'] = language

    lines = ['---']
    lines.extend(_format_line(k, v) for k, v in fields.items() if v is not None)
    lines.append('---')
    return '\n'.join(lines) + '\n\n' + (_field(post, 'content') or '')


def generate_fallback_markdown_content(post: Any) -> str:
    """Minimal document used when a post cannot be serialized normally."""
    lines = [
        '---',
        f"title: {_quote(str(_field(post, 'title') or 'Untitled Post'))}",
        f"type: {_field(post, 'type', 'article')}",
        f"status: {_field(post, 'status', 'published')}",
        f"slug: {_field(post, 'slug') or 'untitled'}",
        f"date: {_quote(now_iso())}",
        '---',
    ]
    return '\n'.join(lines) + '\n\n' + (_field(post, 'content') or 'No content available')


def _folder(post: Any) -> str:
    return 'articles' if _field(post, 'type', 'article') == 'article' else 'notes'


def _entry_filename(post: Any) -> str:
    slug = _field(post, 'slug') or generate_slug(_field(post, 'title') or 'untitled') or 'untitled'
    return f"{slug}.md"


def create_zip_from_posts(posts: list[Any]) -> bytes:
    """Package posts as {articles|notes}/{YYYY-MM}/{slug}.md; always one entry per post."""
    current_month = datetime.now(timezone.utc).strftime('%Y-%m')
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        for post in posts:
            try:
                content = generate_markdown_content(post)
                bucket = year_month(_field(post, 'created_at')) or current_month
                archive.writestr(f"{_folder(post)}/{bucket}/{_entry_filename(post)}", content)
            except Exception as e:
                logger.warning("Export fallback for %s: %s", _field(post, 'slug') or _field(post, 'id'), e)
                name = f"{_field(post, 'slug') or 'post-' + str(_field(post, 'id', 'untitled'))}.md"
                archive.writestr(f"{_folder(post)}/unknown/{name}", generate_fallback_markdown_content(post))
    logger.info("Exported %d posts to ZIP", len(posts))
    return buffer.getvalue()


def _tag_record(tag: Any) -> dict:
    return {
        'id': _field(tag, 'id'),
        'name': _field(tag, 'name'),
        'slug': _field(tag, 'slug'),
        'description': _field(tag, 'description'),
    }


def _export_record(repo: PostRepo, post: Any) -> dict:
    try:
        tags = repo.get_post_tags(post.id)
    except Exception as e:
        logger.error("Failed to load tags for post %s: %s", post.id, e)
        tags = []
    return {
        'id': post.id,
        'title': post.title,
        'content': post.content,
        'excerpt': post.excerpt,
        'slug': post.slug,
        'type': post.type,
        'status': post.status,
        'language': post.language,
        'created_at': normalize_date(post.created_at),
        'updated_at': normalize_date(post.updated_at),
        'published_at': normalize_date(post.published_at),
        'tags': [_tag_record(t) for t in tags],
    }


def load_export_posts(
    repo: PostRepo,
    type: str | None = None,
    status: str | None = None,
    limit: int = DEFAULT_EXPORT_LIMIT,
    ) -> list[dict]:
    """Read posts with their tags and ISO-normalized dates, ready for serialization."""
    return [_export_record(repo, post) for post in repo.find_posts(type=type, status=status, limit=limit)]


def load_export_post(repo: PostRepo, post_id: int | None = None, slug: str | None = None) -> dict | None:
    """One post by id or slug in export form, or None if it does not exist."""
    post = repo.get_post_by_id(post_id) if post_id is not None else repo.get_post_by_slug(slug or '')
    return _export_record(repo, post) if post is not None else None


def export_posts_json(posts: list[Any], type: str | None = None, status: str | None = None) -> str:
    """Serialize posts as an export document with filter metadata."""
    document = {
        'export_date': now_iso(),
        'export_info': {
            'total_posts': len(posts),
            'type_filter': type or 'all',
            'status_filter': status or 'all',
            'format': 'json',
        },
        'posts': [
            {
                'id': _field(p, 'id'),
                'title': _field(p, 'title'),
                'content': _field(p, 'content'),
                'excerpt': _field(p, 'excerpt'),
                'slug': _field(p, 'slug'),
                'type': _field(p, 'type'),
                'status': _field(p, 'status'),
                'language': _field(p, 'language'),
                'created_at': normalize_date(_field(p, 'created_at')),
                'updated_at': normalize_date(_field(p, 'updated_at')),
                'published_at': normalize_date(_field(p, 'published_at')),
                'tags': [_tag_record(t) for t in _field(p, 'tags', [])],
            }
            for p in posts
        ],
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_filename(type: str | None = None, status: str | None = None, fmt: str = 'zip') -> str:
    """blog-export[-<type>s][-<status>]-YYYY-MM-DD.<fmt>"""
    type_part = f"-{type}s" if type else ''
    status_part = f"-{status}" if status else ''
    date_part = datetime.now(timezone.utc).strftime('%Y-%m-%d')
    return f"blog-export{type_part}{status_part}-{date_part}.{fmt}"
