"""Unit tests for core/export.py"""

import io
import json
import re
import zipfile
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from mdblog.core.export import (
    create_zip_from_posts,
    export_filename,
    export_posts_json,
    generate_markdown_content,
    load_export_post,
    load_export_posts,
)
from mdblog.core.frontmatter import parse_front_matter
from mdblog.crud.memory_repo import MemoryRepo
from mdblog.crud.models import PostData


@pytest.fixture(name="article")
def article_fixture():
    return {
        "id": 1,
        "title": "Hello World",
        "type": "article",
        "slug": "hello-world",
        "status": "published",
        "tags": ["foo", "bar"],
        "content": "Body text",
        "excerpt": "Short summary",
        "language": "auto",
        "created_at": "2023-06-01T00:00:00.000Z",
        "updated_at": "2023-06-01T00:00:00.000Z",
    }


def _entries(data: bytes) -> dict[str, str]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name).decode("utf-8") for name in archive.namelist()}


# --- generate_markdown_content ---

def test_round_trip_through_front_matter_parser(article):
    """Title, type, slug and tags survive serialization and re-parsing."""
    fm, body = parse_front_matter(generate_markdown_content(article))
    assert fm["title"] == "Hello World"
    assert fm["type"] == "article"
    assert fm["slug"] == "hello-world"
    assert fm["tags"] == ["foo", "bar"]
    assert fm["date"] == "2023-06-01T00:00:00.000Z"
    assert fm["excerpt"] == "Short summary"
    assert body == "Body text"


def test_field_order_and_omissions(article):
    """Unchanged updated date and auto language are left out."""
    text = generate_markdown_content(article)
    keys = [line.split(":")[0] for line in text.split("---")[1].strip().splitlines()]
    assert keys == ["title", "type", "date", "status", "slug", "tags", "excerpt"]


def test_updated_and_language_included_when_set(article):
    """A distinct updated date and a non-auto language are written."""
    article.update(updated_at="2023-07-01 00:00:00", language="chinese")
    fm, _ = parse_front_matter(generate_markdown_content(article))
    assert fm["updated"] == "2023-07-01T00:00:00.000Z"
    assert fm["language"] == "chinese"


def test_note_has_no_excerpt(article):
    """Excerpts are only written for articles."""
    article["type"] = "note"
    fm, _ = parse_front_matter(generate_markdown_content(article))
    assert "excerpt" not in fm


@pytest.mark.parametrize("title", [
    'Part 1: "Intro"', "true", "42", "[not a list]", "Path: C:\\", 'Quote: \\"x\\"',
])
def test_values_needing_quotes_round_trip(article, title):
    """Colons, quotes, backslashes and values that would re-parse as another type survive quoting."""
    article["title"] = title
    fm, _ = parse_front_matter(generate_markdown_content(article))
    assert fm["title"] == title


def test_tag_objects_and_attribute_records():
    """Attribute-style posts with tag objects serialize by tag name."""
    post = SimpleNamespace(
        title="Tagged", type="note", slug="tagged", status="draft", content="x",
        tags=[SimpleNamespace(name="python"), SimpleNamespace(name="web")],
        excerpt=None, language="auto", created_at=datetime(2023, 1, 2), updated_at=None,
    )
    fm, _ = parse_front_matter(generate_markdown_content(post))
    assert fm["tags"] == ["python", "web"]
    assert fm["status"] == "draft"


# --- create_zip_from_posts ---

def test_zip_layout_by_type_and_month(article):
    """Entries land under {articles|notes}/{YYYY-MM}/{slug}.md."""
    note = dict(article, type="note", slug="quick-note", created_at="2024-02-10 08:00:00")
    entries = _entries(create_zip_from_posts([article, note]))
    assert sorted(entries) == ["articles/2023-06/hello-world.md", "notes/2024-02/quick-note.md"]


def test_zip_unparseable_date_uses_current_month(article):
    """A post with an unreadable date goes into the current month."""
    article["created_at"] = "garbage"
    month = datetime.now(timezone.utc).strftime("%Y-%m")
    assert list(_entries(create_zip_from_posts([article]))) == [f"articles/{month}/hello-world.md"]


def test_zip_failing_post_uses_fallback(article):
    """A post that cannot be serialized still yields one fallback entry."""
    broken = dict(article, slug="broken", tags=5)
    entries = _entries(create_zip_from_posts([article, broken]))
    assert len(entries) == 2
    fallback = entries["articles/unknown/broken.md"]
    fm, body = parse_front_matter(fallback)
    assert fm["title"] == "Hello World"
    assert fm["slug"] == "broken"
    assert body == "Body text"


def test_zip_slug_missing_uses_title(article):
    """Posts without a slug are named from their title."""
    article["slug"] = None
    assert list(_entries(create_zip_from_posts([article]))) == ["articles/2023-06/hello-world.md"]


# --- JSON export / filenames ---

def test_export_posts_json(article):
    """The export document carries filter info and per-post fields."""
    article["tags"] = [{"id": 3, "name": "foo", "slug": "foo", "description": None}]
    doc = json.loads(export_posts_json([article], type="article"))
    assert doc["export_info"] == {"total_posts": 1, "type_filter": "article", "status_filter": "all", "format": "json"}
    assert doc["posts"][0]["slug"] == "hello-world"
    assert doc["posts"][0]["tags"] == [{"id": 3, "name": "foo", "slug": "foo", "description": None}]
    assert doc["export_date"].endswith("Z")


@pytest.mark.parametrize("args,pattern", [
    ((None, None, "zip"), r"^blog-export-\d{4}-\d{2}-\d{2}\.zip$"),
    (("article", "published", "json"), r"^blog-export-articles-published-\d{4}-\d{2}-\d{2}\.json$"),
    (("note", None, "zip"), r"^blog-export-notes-\d{4}-\d{2}-\d{2}\.zip$"),
])
def test_export_filename(args, pattern):
    """Filenames encode type and status filters plus the date."""
    assert re.match(pattern, export_filename(*args))


def test_load_export_posts_from_repo():
    """Stored posts are read with tags and ISO dates, filtered by type."""
    repo = MemoryRepo()
    tag = repo.create_tag("Python", "python")
    repo.create_post(PostData(title="A", content="a", slug="post-a", type="article",
                              created_at=datetime(2023, 6, 1)), [tag.id])
    repo.create_post(PostData(content="b", slug="note-b", type="note", created_at=datetime(2023, 6, 2)))
    records = load_export_posts(repo, type="article")
    assert [r["slug"] for r in records] == ["post-a"]
    assert records[0]["created_at"] == "2023-06-01T00:00:00.000Z"
    assert records[0]["tags"][0]["name"] == "Python"


def test_load_export_post_by_id_or_slug():
    """A single post is found by id or slug; unknown keys give None."""
    repo = MemoryRepo()
    tag = repo.create_tag("Python", "python")
    post = repo.create_post(PostData(title="A", content="a", slug="post-a", created_at=datetime(2023, 6, 1)), [tag.id])
    by_id = load_export_post(repo, post_id=post.id)
    assert by_id["slug"] == "post-a"
    assert by_id["tags"][0]["name"] == "Python"
    assert load_export_post(repo, slug="post-a") == by_id
    assert load_export_post(repo, post_id=999) is None
    assert load_export_post(repo, slug="missing") is None
