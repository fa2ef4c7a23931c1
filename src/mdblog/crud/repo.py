from __future__ import annotations
from abc import ABC, abstractmethod

from mdblog.crud.models import Post, PostData, Tag


class PostRepo(ABC):
    """Post/tag persistence capability consumed by the import and export pipeline."""

    @abstractmethod
    def find_all_posts(self) -> list[Post]:
        raise NotImplementedError

    @abstractmethod
    def find_posts(self, type: str | None = None, status: str | None = None, limit: int | None = None) -> list[Post]:
        """Posts filtered by type/status, newest created_at first."""
        raise NotImplementedError

    @abstractmethod
    def get_post_by_id(self, post_id: int) -> Post | None:
        raise NotImplementedError

    @abstractmethod
    def get_post_by_slug(self, slug: str) -> Post | None:
        raise NotImplementedError

    @abstractmethod
    def create_post(self, data: PostData, tag_ids: list[int] | None = None) -> Post:
        """Insert a post; raises PersistenceError when the slug is taken."""
        raise NotImplementedError

    @abstractmethod
    def update_post(self, post_id: int, data: PostData, tag_ids: list[int] | None = None) -> Post:
        """Replace a post's fields; tag_ids, when given, replaces its tag set."""
        raise NotImplementedError

    @abstractmethod
    def delete_post(self, post_id: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_post_tags(self, post_id: int) -> list[Tag]:
        raise NotImplementedError

    @abstractmethod
    def find_all_tags(self) -> list[Tag]:
        raise NotImplementedError

    @abstractmethod
    def get_tag_by_name(self, name: str) -> Tag | None:
        """Case-insensitive lookup."""
        raise NotImplementedError

    @abstractmethod
    def create_tag(self, name: str, slug: str) -> Tag:
        """Insert a tag; raises PersistenceError when the name or slug is taken."""
        raise NotImplementedError
