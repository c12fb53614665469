"""
Comment service — CRUD and cursor pagination for comments of a thread.

Timestamps are stamped here from the injected clock rather than by the
database, so a created comment has ``created_at == updated_at`` equal to the
moment of the call.
"""
import logging

from app import entities
from app.errors import DomainError, NotFoundError
from app.schemas import CommentUpdate
from app.services.clock import Clock, utc_now
from app.services.transaction import transaction
from app.services.uniqueness import CommentUniqueness
from app.services.validation import CommentCandidate, CommentContent, validate, validate_page
from app.storage import Storage

_logger = logging.getLogger(__name__)


class CommentService:
    def __init__(
        self,
        storage: Storage,
        uniqueness: CommentUniqueness,
        *,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._storage = storage
        self._uniqueness = uniqueness
        self._clock = clock
        self._logger = logger or _logger

    async def list_comments(self, thread_id: int, limit: int, cursor: int = 0) -> entities.CommentList:
        validate_page(limit, cursor)
        async with self._storage.reader() as db:
            try:
                return await self._storage.comments.list_comments(db, thread_id, limit, cursor)
            except DomainError as exc:
                raise exc.with_context("failed to list comments")

    async def get_comment(self, comment_id: int) -> entities.Comment:
        async with self._storage.reader() as db:
            try:
                return await self._storage.comments.get_comment_by_id(db, comment_id)
            except DomainError as exc:
                raise exc.with_context("failed to get comment by id")

    async def create_comment(self, candidate: entities.Comment) -> entities.Comment:
        validate(CommentCandidate, candidate.model_dump())

        now = self._clock()
        comment = candidate.model_copy(deep=True, update={"created_at": now, "updated_at": now})

        try:
            async with transaction(self._storage) as tx:
                comment.id = await self._storage.comments.insert_comment(tx, comment)
        except DomainError as exc:
            raise exc.with_context("failed to create comment")

        self._logger.info("Comment created: id=%d thread_id=%d", comment.id, comment.thread_id)
        return comment

    async def update_comment(self, comment_id: int, data: CommentUpdate) -> entities.Comment:
        """Replace the content of an existing comment; NotFoundError if absent."""
        validate(CommentContent, {"content": data.content})

        try:
            async with transaction(self._storage) as tx:
                # The read doubles as the existence gate.
                current = await self._storage.comments.get_comment_by_id(tx, comment_id)
                changed = current.model_copy(
                    update={"content": data.content, "updated_at": self._clock()}
                )
                updated = await self._storage.comments.update_comment(tx, comment_id, changed)
        except DomainError as exc:
            raise exc.with_context("failed to update comment")

        self._logger.info("Comment updated: id=%d", comment_id)
        return updated

    async def delete_comment(self, comment_id: int) -> None:
        try:
            async with transaction(self._storage) as tx:
                if not await self._uniqueness.exists_by_id(tx, comment_id):
                    raise NotFoundError("comment", "id", comment_id)
                await self._storage.comments.delete_comment(tx, comment_id)
        except DomainError as exc:
            raise exc.with_context("failed to delete comment")

        self._logger.info("Comment deleted: id=%d", comment_id)
