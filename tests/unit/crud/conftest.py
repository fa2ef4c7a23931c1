"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from mdblog.crud.models import PostData
from mdblog.crud.sql_repo import SQLRepo


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture(name="repo")
def repo_fixture(session):
    return SQLRepo(session)


@pytest.fixture(name="post_data")
def post_data_fixture():
    """Factory for PostData with sensible defaults."""
    def _make(slug: str = "hello-world", **fields) -> PostData:
        return PostData(**{"title": "Hello", "content": "Body", "slug": slug, **fields})
    return _make
