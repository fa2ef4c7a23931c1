"""Unit tests for crud/memory_repo.py"""

from datetime import datetime

import pytest

from mdblog.core.errors import PersistenceError
from mdblog.crud.memory_repo import MemoryRepo


@pytest.fixture(name="memory")
def memory_fixture():
    return MemoryRepo()


def test_create_assigns_ids(memory, post_data):
    """Posts and tags draw ids from one counter."""
    tag = memory.create_tag("Alpha", "alpha")
    post = memory.create_post(post_data(), [tag.id])
    assert post.id != tag.id
    assert memory.get_post_by_id(post.id) is post


def test_unique_slug_enforced(memory, post_data):
    """A second post with the same slug is rejected."""
    memory.create_post(post_data())
    with pytest.raises(PersistenceError):
        memory.create_post(post_data())


def test_update_cannot_steal_slug(memory, post_data):
    """Renaming onto another post's slug is rejected."""
    memory.create_post(post_data("first-post"))
    second = memory.create_post(post_data("second-post"))
    with pytest.raises(PersistenceError):
        memory.update_post(second.id, post_data("first-post"))


def test_tag_uniqueness_and_case_insensitive_lookup(memory):
    """Tag names are unique and looked up ignoring case."""
    memory.create_tag("Python", "python")
    with pytest.raises(PersistenceError):
        memory.create_tag("Python", "py")
    assert memory.get_tag_by_name("python").slug == "python"


def test_find_posts_newest_first(memory, post_data):
    """find_posts sorts by created_at descending and applies limit."""
    memory.create_post(post_data("older", created_at=datetime(2020, 1, 1)))
    memory.create_post(post_data("newer", created_at=datetime(2021, 1, 1)))
    assert [p.slug for p in memory.find_posts(limit=1)] == ["newer"]


def test_delete_post(memory, post_data):
    """delete_post drops the post and its links."""
    tag = memory.create_tag("Alpha", "alpha")
    post = memory.create_post(post_data(), [tag.id])
    assert memory.delete_post(post.id)
    assert memory.get_post_tags(post.id) == []
    assert not memory.delete_post(post.id)
