"""Unit tests for core/archive.py"""

import pytest

from mdblog.core.archive import (
    is_markdown_file,
    parse_markdown_text,
    parse_zip_file,
    should_ignore_file,
    validate_zip_file,
)
from mdblog.core.errors import ArchiveError


@pytest.mark.parametrize("path,expected", [
    ("a.md", True),
    ("dir/B.MD", True),
    ("notes.markdown", True),
    ("a.txt", False),
    ("md", False),
])
def test_is_markdown_file(path, expected):
    """Only .md/.markdown extensions are accepted, case-insensitively."""
    assert is_markdown_file(path) is expected


@pytest.mark.parametrize("path,expected", [
    ("__MACOSX/a.md", True),
    ("dir/.DS_Store", True),
    ("Thumbs.db", True),
    ("dir/._a.md", True),
    ("dir/a.md", False),
])
def test_should_ignore_file(path, expected):
    """System and resource-fork entries are ignored."""
    assert should_ignore_file(path) is expected


# --- parse_zip_file ---

def test_parse_zip_filters_entries(sample_zip):
    """Only non-ignored markdown entries are extracted."""
    result = parse_zip_file(sample_zip)
    paths = sorted(f.relative_path for f in result.markdown_files)
    assert paths == ["README.MARKDOWN", "posts/2023/hello.md"]
    assert result.total_files == 2
    assert result.total_entries == 7
    assert result.errors == []


def test_parse_zip_splits_front_matter(sample_zip, sample_md):
    """Each extracted file carries parsed front matter, body and folder path."""
    result = parse_zip_file(sample_zip)
    hello = next(f for f in result.markdown_files if f.filename == "hello.md")
    assert hello.front_matter == {"title": "Hello World", "tags": ["foo", "bar"]}
    assert hello.body == "Body text"
    assert hello.folder_path == "posts/2023"
    assert hello.content == sample_md


def test_parse_zip_records_undecodable_entry(make_zip):
    """A non-UTF-8 entry is dropped with an error; the rest still parse."""
    data = make_zip({"good.md": "# Good\n\nText", "bad.md": b"\xff\xfe\xfa bad"})
    result = parse_zip_file(data)
    assert [f.filename for f in result.markdown_files] == ["good.md"]
    assert len(result.errors) == 1
    assert "bad.md" in result.errors[0]


def test_parse_zip_unicode_paths(make_zip):
    """UTF-8 entry names keep their folder structure."""
    result = parse_zip_file(make_zip({"文章/你好.md": "内容"}))
    assert result.markdown_files[0].folder_path == "文章"
    assert result.markdown_files[0].filename == "你好.md"


def test_parse_zip_invalid_archive():
    """Bytes that are not a ZIP raise ArchiveError."""
    with pytest.raises(ArchiveError):
        parse_zip_file(b"not a zip file")


def test_macosx_only_archive_has_no_markdown(make_zip):
    """An archive holding only a resource fork yields no files and fails validation."""
    data = make_zip({"__MACOSX/._hello.md": b"\x00\x05"})
    assert parse_zip_file(data).markdown_files == []
    result = validate_zip_file(data, "export.zip")
    assert not result.valid
    assert "ZIP file must contain at least one markdown file" in result.errors


# --- validate_zip_file ---

def test_validate_accepts_good_archive(sample_zip):
    """A small archive with markdown passes."""
    result = validate_zip_file(sample_zip, "posts.zip", "application/zip")
    assert result.valid
    assert result.errors == []


def test_validate_wrong_type(make_zip):
    """Neither a .zip name nor a zip content type is a type error."""
    data = make_zip({"a.md": "text"})
    assert "File must be a ZIP archive" in validate_zip_file(data, "a.tar").errors


def test_validate_content_type_accepted_without_extension(make_zip):
    """A zip content type is enough when the name lacks .zip."""
    data = make_zip({"a.md": "text"})
    assert validate_zip_file(data, "upload", "application/x-zip-compressed").valid


def test_validate_collects_every_violation(make_zip):
    """Size, type and entry-count problems are all reported together."""
    data = make_zip({"a.md": "1", "b.md": "2", "c.md": "3"})
    result = validate_zip_file(data, "a.bin", max_bytes=10, max_entries=2)
    assert not result.valid
    assert any(e.startswith("File size exceeds") for e in result.errors)
    assert "File must be a ZIP archive" in result.errors
    assert "ZIP file contains too many files (max 2)" in result.errors


def test_validate_corrupted_archive():
    """Unreadable archive bytes are reported, not raised."""
    result = validate_zip_file(b"garbage", "a.zip")
    assert result.errors == ["Invalid ZIP file or corrupted"]


def test_parse_markdown_text(sample_md):
    """A direct upload becomes a root-level file."""
    f = parse_markdown_text("hello.md", sample_md)
    assert f.relative_path == "hello.md"
    assert f.folder_path == ""
    assert f.front_matter["title"] == "Hello World"
