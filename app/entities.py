"""
Domain entities passed between the application services and the storage
layer.

These are plain pydantic models rather than ORM rows so that services can
copy, compare and return them without an open database session.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    id: int = 0
    name: str
    password: str = ""
    session_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class Session(BaseModel):
    id: str
    user_id: int
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class Author(BaseModel):
    """Reference to the user who wrote a comment."""

    id: int
    name: str | None = None
    model_config = ConfigDict(from_attributes=True)


class Thread(BaseModel):
    id: int = 0
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class Comment(BaseModel):
    id: int = 0
    content: str
    thread_id: int
    author: Author
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class ThreadList(BaseModel):
    threads: list[Thread] = Field(default_factory=list)
    has_next: bool = False
    cursor: int = 0


class CommentList(BaseModel):
    comments: list[Comment] = Field(default_factory=list)
    has_next: bool = False
    cursor: int = 0
