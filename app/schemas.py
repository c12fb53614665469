from pydantic import BaseModel, ConfigDict
from datetime import datetime


# --- User / authentication ---

class UserCredentials(BaseModel):
    """Payload for both sign-up and login."""
    name: str
    password: str


class UserResponse(BaseModel):
    id: int
    name: str
    session_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Thread ---

class ThreadCreate(BaseModel):
    title: str


class ThreadUpdate(ThreadCreate):
    pass


class ThreadResponse(BaseModel):
    id: int
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class ThreadListResponse(BaseModel):
    threads: list[ThreadResponse]
    has_next: bool
    cursor: int
    model_config = ConfigDict(from_attributes=True)


# --- Comment ---

class CommentCreate(BaseModel):
    content: str


class CommentUpdate(CommentCreate):
    pass


class AuthorResponse(BaseModel):
    id: int
    name: str | None = None
    model_config = ConfigDict(from_attributes=True)


class CommentResponse(BaseModel):
    id: int
    content: str
    thread_id: int
    author: AuthorResponse
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    has_next: bool
    cursor: int
    model_config = ConfigDict(from_attributes=True)


# --- Errors ---

class ErrorResponse(BaseModel):
    error: str
    detail: str | list[str]
