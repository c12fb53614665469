"""
Domain uniqueness checks.

Each checker answers "does a row with this key already exist" by running
the matching repository lookup on the caller's session.  A lookup that
finds nothing means False; any other failure propagates unchanged so the
calling operation aborts.
"""
from typing import Awaitable

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError
from app.repositories import (
    CommentRepository,
    SessionRepository,
    ThreadRepository,
    UserRepository,
)


async def _exists(lookup: Awaitable) -> bool:
    try:
        await lookup
    except NotFoundError:
        return False
    return True


class UserUniqueness:
    def __init__(self, repo: UserRepository) -> None:
        self._repo = repo

    async def exists_by_id(self, db: AsyncSession, user_id: int) -> bool:
        return await _exists(self._repo.get_user_by_id(db, user_id))

    async def exists_by_name(self, db: AsyncSession, name: str) -> bool:
        return await _exists(self._repo.get_user_by_name(db, name))


class SessionUniqueness:
    def __init__(self, repo: SessionRepository) -> None:
        self._repo = repo

    async def exists_by_id(self, db: AsyncSession, session_id: str) -> bool:
        return await _exists(self._repo.get_session_by_id(db, session_id))


class ThreadUniqueness:
    def __init__(self, repo: ThreadRepository) -> None:
        self._repo = repo

    async def exists_by_id(self, db: AsyncSession, thread_id: int) -> bool:
        return await _exists(self._repo.get_thread_by_id(db, thread_id))

    async def exists_by_title(self, db: AsyncSession, title: str) -> bool:
        return await _exists(self._repo.get_thread_by_title(db, title))


class CommentUniqueness:
    def __init__(self, repo: CommentRepository) -> None:
        self._repo = repo

    async def exists_by_id(self, db: AsyncSession, comment_id: int) -> bool:
        return await _exists(self._repo.get_comment_by_id(db, comment_id))
