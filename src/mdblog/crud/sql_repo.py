from __future__ import annotations
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from mdblog.core.errors import PersistenceError
from mdblog.crud.models import Post, PostData, PostTag, Tag
from mdblog.crud.repo import PostRepo


logger = logging.getLogger(__name__)


def _apply(row: Post, data: PostData) -> Post:
    now = datetime.utcnow()
    for name, value in data.model_dump(exclude={'created_at', 'updated_at'}).items():
        setattr(row, name, value)
    if data.created_at is not None:
        row.created_at = data.created_at
    row.updated_at = data.updated_at or now
    return row


class SQLRepo(PostRepo):
    """PostRepo over a SQLModel session; every write commits on its own."""

    def __init__(self, session: Session):
        self.session = session

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("Rejected write (%s): %s", what, e.orig)
            raise PersistenceError(f"Failed to save {what}: {e.orig}") from e

    def _set_tags(self, post_id: int, tag_ids: list[int]) -> None:
        for link in self.session.exec(select(PostTag).where(PostTag.post_id == post_id)).all():
            self.session.delete(link)
        self.session.flush()
        for tag_id in dict.fromkeys(tag_ids):
            self.session.add(PostTag(post_id=post_id, tag_id=tag_id))

    def find_all_posts(self) -> list[Post]:
        return list(self.session.exec(select(Post).order_by(Post.id)).all())

    def find_posts(self, type: str | None = None, status: str | None = None, limit: int | None = None) -> list[Post]:
        stmt = select(Post)
        if type:
            stmt = stmt.where(Post.type == type)
        if status:
            stmt = stmt.where(Post.status == status)
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.exec(stmt).all())

    def get_post_by_id(self, post_id: int) -> Post | None:
        return self.session.get(Post, post_id)

    def get_post_by_slug(self, slug: str) -> Post | None:
        return self.session.exec(select(Post).where(Post.slug == slug)).first()

    def create_post(self, data: PostData, tag_ids: list[int] | None = None) -> Post:
        row = _apply(Post(content=data.content, slug=data.slug), data)
        self.session.add(row)
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise PersistenceError(f'Slug "{data.slug}" already exists') from e
        if tag_ids:
            self._set_tags(row.id, tag_ids)
        self._commit(f"post {data.slug}")
        self.session.refresh(row)
        return row

    def update_post(self, post_id: int, data: PostData, tag_ids: list[int] | None = None) -> Post:
        row = self.session.get(Post, post_id)
        if row is None:
            raise PersistenceError(f"Post {post_id} not found")
        self.session.add(_apply(row, data))
        if tag_ids is not None:
            self._set_tags(post_id, tag_ids)
        self._commit(f"post {data.slug}")
        self.session.refresh(row)
        return row

    def delete_post(self, post_id: int) -> bool:
        row = self.session.get(Post, post_id)
        if row is None:
            return False
        self._set_tags(post_id, [])
        self.session.delete(row)
        self._commit(f"post {post_id}")
        return True

    def get_post_tags(self, post_id: int) -> list[Tag]:
        stmt = select(Tag).join(PostTag, PostTag.tag_id == Tag.id).where(PostTag.post_id == post_id).order_by(Tag.name)
        return list(self.session.exec(stmt).all())

    def find_all_tags(self) -> list[Tag]:
        return list(self.session.exec(select(Tag).order_by(Tag.name)).all())

    def get_tag_by_name(self, name: str) -> Tag | None:
        return self.session.exec(select(Tag).where(func.lower(Tag.name) == name.lower())).first()

    def create_tag(self, name: str, slug: str) -> Tag:
        row = Tag(name=name, slug=slug)
        self.session.add(row)
        self._commit(f"tag {name}")
        self.session.refresh(row)
        return row
