"""Database table definitions for posts, tags and their association"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, Relationship, SQLModel


class PostTag(SQLModel, table=True):
    """Many-to-many link between posts and tags"""
    __tablename__ = "post_tags"
    post_id: int = Field(foreign_key="posts.id", primary_key=True)
    tag_id: int = Field(foreign_key="tags.id", primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))


class Post(SQLModel, table=True):
    """A blog post: long-form article or short-form note"""
    __tablename__ = "posts"
    id: Optional[int] = Field(default=None, primary_key=True)
    title: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    content: str = Field(..., sa_column=Column(Text, nullable=False))
    excerpt: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    slug: str = Field(..., sa_column=Column(String(100), unique=True, index=True, nullable=False))
    type: str = Field(default="article", sa_column=Column(String(16), index=True, nullable=False))
    status: str = Field(default="draft", sa_column=Column(String(16), index=True, nullable=False))
    language: str = Field(default="auto", sa_column=Column(String(16), nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    published_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), index=True, nullable=True))
    tags: List["Tag"] = Relationship(back_populates="posts", link_model=PostTag)


class Tag(SQLModel, table=True):
    """A named label attached to posts; names are unique case-insensitively by convention"""
    __tablename__ = "tags"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., sa_column=Column(String(50), unique=True, nullable=False))
    slug: str = Field(..., sa_column=Column(String(100), unique=True, index=True, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_column=Column(DateTime(timezone=False), nullable=False))
    posts: List[Post] = Relationship(back_populates="tags", link_model=PostTag)


class PostData(SQLModel):
    """Writable post fields passed to a repository (no id, no relationships)."""
    title: Optional[str] = None
    content: str
    excerpt: Optional[str] = None
    slug: str
    type: str = "article"
    status: str = "published"
    language: str = "auto"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
