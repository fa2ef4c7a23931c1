"""Root test configuration: runtime artifact cleanup and shared builders"""

import io
import zipfile
from pathlib import Path

import pytest

from mdblog.core.frontmatter import parse_front_matter
from mdblog.core.models import ParsedMarkdownFile, ParsedPost


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["mdblog.db", "test.db"]

SAMPLE_MD = """\
---
title: Hello World
tags: [foo, bar]
---

Body text"""


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD


@pytest.fixture(name="make_zip")
def make_zip_fixture():
    """Build an in-memory ZIP from {path: str | bytes}; paths ending in / become directories."""
    def _make(entries: dict) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            for path, content in entries.items():
                archive.writestr(path, content)
        return buffer.getvalue()
    return _make


@pytest.fixture(name="make_file")
def make_file_fixture():
    """Wrap markdown text as a ParsedMarkdownFile at a given archive path."""
    def _make(text: str, path: str = "post.md") -> ParsedMarkdownFile:
        front_matter, body = parse_front_matter(text)
        return ParsedMarkdownFile(
            filename=path.split("/")[-1],
            content=text,
            front_matter=front_matter,
            body=body,
            relative_path=path,
            folder_path="/".join(path.split("/")[:-1]),
        )
    return _make


@pytest.fixture(name="make_post")
def make_post_fixture():
    """Build a valid article candidate; keyword arguments replace individual fields."""
    def _make(**overrides) -> ParsedPost:
        data = {
            "title": "A Valid Post",
            "content": "Some body content.",
            "slug": "a-valid-post",
            "type": "article",
            "status": "published",
            "language": "english",
            "tags": [],
            "created_at": "2023-06-01T00:00:00.000Z",
            "original_path": "a-valid-post.md",
        }
        data.update(overrides)
        return ParsedPost(**data)
    return _make
