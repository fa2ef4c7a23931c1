from dataclasses import dataclass, field
from datetime import datetime

from mdblog.core.errors import PersistenceError
from mdblog.crud.models import Post, PostData, Tag
from mdblog.crud.repo import PostRepo


@dataclass
class MemoryRepo(PostRepo):
    """In-process PostRepo with the same uniqueness rules as the SQL tables."""
    _posts: dict[int, Post] = field(default_factory=dict)
    _tags: dict[int, Tag] = field(default_factory=dict)
    _links: dict[int, list[int]] = field(default_factory=dict)
    _next_id: int = 1

    def _id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def _slug_taken(self, slug: str, post_id: int | None = None) -> bool:
        return any(p.slug == slug and p.id != post_id for p in self._posts.values())

    def _fill(self, row: Post, data: PostData) -> Post:
        for name, value in data.model_dump(exclude={'created_at', 'updated_at'}).items():
            setattr(row, name, value)
        if data.created_at is not None:
            row.created_at = data.created_at
        row.updated_at = data.updated_at or datetime.utcnow()
        return row

    def find_all_posts(self) -> list[Post]:
        return list(self._posts.values())

    def find_posts(self, type: str | None = None, status: str | None = None, limit: int | None = None) -> list[Post]:
        posts = [
            p for p in self._posts.values()
            if (not type or p.type == type) and (not status or p.status == status)
        ]
        posts.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        return posts[:limit] if limit else posts

    def get_post_by_id(self, post_id: int) -> Post | None:
        return self._posts.get(post_id)

    def get_post_by_slug(self, slug: str) -> Post | None:
        return next((p for p in self._posts.values() if p.slug == slug), None)

    def create_post(self, data: PostData, tag_ids: list[int] | None = None) -> Post:
        if self._slug_taken(data.slug):
            raise PersistenceError(f'Slug "{data.slug}" already exists')
        row = self._fill(Post(id=self._id(), content=data.content, slug=data.slug), data)
        self._posts[row.id] = row
        self._links[row.id] = list(dict.fromkeys(tag_ids or []))
        return row

    def update_post(self, post_id: int, data: PostData, tag_ids: list[int] | None = None) -> Post:
        row = self._posts.get(post_id)
        if row is None:
            raise PersistenceError(f"Post {post_id} not found")
        if self._slug_taken(data.slug, post_id):
            raise PersistenceError(f'Slug "{data.slug}" already exists')
        self._fill(row, data)
        if tag_ids is not None:
            self._links[post_id] = list(dict.fromkeys(tag_ids))
        return row

    def delete_post(self, post_id: int) -> bool:
        self._links.pop(post_id, None)
        return self._posts.pop(post_id, None) is not None

    def get_post_tags(self, post_id: int) -> list[Tag]:
        tags = [self._tags[i] for i in self._links.get(post_id, []) if i in self._tags]
        return sorted(tags, key=lambda t: t.name)

    def find_all_tags(self) -> list[Tag]:
        return sorted(self._tags.values(), key=lambda t: t.name)

    def get_tag_by_name(self, name: str) -> Tag | None:
        lowered = name.lower()
        return next((t for t in self._tags.values() if t.name.lower() == lowered), None)

    def create_tag(self, name: str, slug: str) -> Tag:
        if any(t.name == name or t.slug == slug for t in self._tags.values()):
            raise PersistenceError(f'Tag "{name}" already exists')
        row = Tag(id=self._id(), name=name, slug=slug)
        self._tags[row.id] = row
        return row
