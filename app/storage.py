"""
Storage — the persistence collaborator handed to the application services.

A ``Storage`` bundles a session factory with one repository per table.
Transactions are plain ``AsyncSession`` objects: ``begin`` opens one,
``commit``/``rollback`` end it and release the connection.  Services never
call these directly; they go through ``app.services.transaction``.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session
from app.errors import TransactionError
from app.repositories import (
    CommentRepository,
    SessionRepository,
    ThreadRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class Storage:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self.users = UserRepository()
        self.sessions = SessionRepository()
        self.threads = ThreadRepository()
        self.comments = CommentRepository()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def begin(self) -> AsyncSession:
        """Open a session with a started transaction."""
        tx = self._session_factory()
        try:
            await tx.begin()
        except SQLAlchemyError as exc:
            await tx.close()
            raise TransactionError("begin") from exc
        return tx

    async def commit(self, tx: AsyncSession) -> None:
        try:
            await tx.commit()
        finally:
            await tx.close()

    async def rollback(self, tx: AsyncSession) -> None:
        try:
            await tx.rollback()
        finally:
            await tx.close()

    # ------------------------------------------------------------------
    # Read-only access
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[AsyncSession]:
        """Yield a session for read-only work; nothing is ever committed."""
        async with self._session_factory() as db:
            yield db


# Module-level instance used by the HTTP layer; tests swap it through the
# ``get_storage`` dependency.
storage = Storage(async_session)
