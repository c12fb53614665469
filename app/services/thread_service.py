"""
Thread service — CRUD and cursor pagination for the Thread aggregate.

Reads go straight to the repository on a read-only session.  Every write
opens one transaction, gates on the uniqueness/existence checks first and
only then mutates, so a failed check never reaches the UPDATE or DELETE.
"""
import logging

from app import entities
from app.errors import AlreadyExistsError, DomainError, NotFoundError
from app.schemas import ThreadCreate, ThreadUpdate
from app.services.clock import Clock, utc_now
from app.services.transaction import transaction
from app.services.uniqueness import ThreadUniqueness
from app.services.validation import ThreadCandidate, validate, validate_page
from app.storage import Storage

_logger = logging.getLogger(__name__)


def _validate_title(title: str) -> None:
    validate(ThreadCandidate, {"title": title})


class ThreadService:
    def __init__(
        self,
        storage: Storage,
        uniqueness: ThreadUniqueness,
        *,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._storage = storage
        self._uniqueness = uniqueness
        self._clock = clock
        self._logger = logger or _logger

    async def list_threads(self, limit: int, cursor: int = 0) -> entities.ThreadList:
        validate_page(limit, cursor)
        async with self._storage.reader() as db:
            try:
                return await self._storage.threads.list_threads(db, limit, cursor)
            except DomainError as exc:
                raise exc.with_context("failed to list threads")

    async def get_thread(self, thread_id: int) -> entities.Thread:
        async with self._storage.reader() as db:
            try:
                return await self._storage.threads.get_thread_by_id(db, thread_id)
            except DomainError as exc:
                raise exc.with_context("failed to get thread by id")

    async def create_thread(self, data: ThreadCreate) -> entities.Thread:
        """Insert a thread with a title no other thread uses."""
        _validate_title(data.title)
        now = self._clock()
        thread = entities.Thread(title=data.title, created_at=now, updated_at=now)

        try:
            async with transaction(self._storage) as tx:
                if await self._uniqueness.exists_by_title(tx, thread.title):
                    raise AlreadyExistsError("thread", "title", thread.title)
                thread.id = await self._storage.threads.insert_thread(tx, thread)
        except DomainError as exc:
            raise exc.with_context("failed to create thread")

        self._logger.info("Thread created: id=%d", thread.id)
        return thread

    async def update_thread(self, thread_id: int, data: ThreadUpdate) -> entities.Thread:
        """
        Retitle an existing thread.

        The caller's *data* is only read; a new Thread entity is stamped.
        Raises NotFoundError for an unknown id and AlreadyExistsError when
        another thread already has the new title.
        """
        _validate_title(data.title)
        thread = entities.Thread(id=thread_id, title=data.title, updated_at=self._clock())

        try:
            async with transaction(self._storage) as tx:
                if not await self._uniqueness.exists_by_id(tx, thread_id):
                    raise NotFoundError("thread", "id", thread_id)
                await self._ensure_title_free(tx, thread)
                updated = await self._storage.threads.update_thread(tx, thread_id, thread)
        except DomainError as exc:
            raise exc.with_context("failed to update thread")

        self._logger.info("Thread updated: id=%d", thread_id)
        return updated

    async def delete_thread(self, thread_id: int) -> None:
        try:
            async with transaction(self._storage) as tx:
                if not await self._uniqueness.exists_by_id(tx, thread_id):
                    raise NotFoundError("thread", "id", thread_id)
                await self._storage.threads.delete_thread(tx, thread_id)
        except DomainError as exc:
            raise exc.with_context("failed to delete thread")

        self._logger.info("Thread deleted: id=%d", thread_id)

    async def _ensure_title_free(self, tx, thread: entities.Thread) -> None:
        try:
            holder = await self._storage.threads.get_thread_by_title(tx, thread.title)
        except NotFoundError:
            return
        if holder.id != thread.id:
            raise AlreadyExistsError("thread", "title", thread.title)
