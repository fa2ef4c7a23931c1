"""Intermediate data models for the import and export pipeline"""

from dataclasses import dataclass, field
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# A front-matter value is one of these variants; downstream code dispatches with isinstance.
FrontMatterValue = Union[str, bool, int, float, list[str]]
FrontMatter = dict[str, FrontMatterValue]

PostType = Literal['article', 'note']
PostStatus = Literal['draft', 'published']


@dataclass(frozen=True)
class ParsedMarkdownFile:
    """One markdown file pulled from an archive or uploaded directly; immutable."""
    filename:      str              # base name
    content:       str              # raw text including the front-matter block
    front_matter:  FrontMatter
    body:          str              # text after front-matter removal
    relative_path: str              # path within the archive
    folder_path:   str = ''         # relative_path minus the last segment


class ParsedPost(BaseModel):
    """Candidate post derived from a ParsedMarkdownFile, prior to storage."""
    title:         str | None = None
    content:       str
    excerpt:       str | None = None
    slug:          str
    type:          PostType = 'article'
    status:        PostStatus = 'published'
    language:      str = 'auto'     # front-matter value verbatim; 'auto' when absent
    tags:          list[str] = Field(default_factory=list)
    created_at:    str
    updated_at:    str | None = None
    original_path: str | None = None
    errors:        list[str] = Field(default_factory=list)


class ImportSummary(BaseModel):
    """Result of processing one batch of markdown files (nothing persisted)."""
    model_config = ConfigDict(frozen=True)

    total_files: int
    valid_posts: int
    posts:       list[ParsedPost]
    conflicts:   list[str] = Field(default_factory=list)
    errors:      list[str] = Field(default_factory=list)


class ImportStatistics(BaseModel):
    articles:    int = 0
    notes:       int = 0
    published:   int = 0
    drafts:      int = 0
    unique_tags: int = 0


class ImportPreview(BaseModel):
    """What an import would do: valid/invalid split, storage conflicts, statistics."""
    model_config = ConfigDict(frozen=True)

    total_files:    int
    valid_posts:    int
    invalid_posts:  int
    posts:          list[ParsedPost]    # first `limit` valid posts
    more_available: bool
    conflicts:      list[str]
    errors:         list[str]
    statistics:     ImportStatistics


@dataclass
class ImportOptions:
    overwrite_existing:  bool = False
    create_missing_tags: bool = True


@dataclass
class ImportResult:
    """Counts accumulated while committing a batch; returned in its final state."""
    imported:    int = 0
    skipped:     int = 0
    overwritten: int = 0
    new_tags:    int = 0
    errors:      list[str] = field(default_factory=list)


@dataclass
class ZipParseResult:
    markdown_files: list[ParsedMarkdownFile]
    total_files:    int                 # markdown files actually extracted
    total_entries:  int                 # every entry in the archive, directories included
    errors:         list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationResult:
    valid:  bool
    errors: list[str]
