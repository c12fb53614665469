from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app import entities, models
from app.errors import NotFoundError, RepositoryMethod
from app.repositories.base import BaseRepository, limit_for_has_next, paginate, timestamps


def _comment_to_entity(row: models.Comment) -> entities.Comment:
    """Map a Comment row (author eagerly loaded) to the domain entity."""
    author_name = row.author.name if row.author is not None else None
    return entities.Comment(
        id=row.id,
        content=row.content,
        thread_id=row.thread_id,
        author=entities.Author(id=row.user_id, name=author_name),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class CommentRepository(BaseRepository):
    entity = "comment"

    async def list_comments(
        self, db: AsyncSession, thread_id: int, limit: int, cursor: int
    ) -> entities.CommentList:
        """
        Return the page of comments in *thread_id* whose ids follow
        *cursor*, oldest first, each with its author's name.

        Raises NotFoundError when the page is empty.
        """
        q = (
            select(models.Comment)
            .where(models.Comment.thread_id == thread_id, models.Comment.id > cursor)
            .options(joinedload(models.Comment.author))
            .order_by(models.Comment.id.asc())
            .limit(limit_for_has_next(limit))
        )
        with self.translate_errors(RepositoryMethod.LIST):
            result = await db.execute(q)
            rows = result.scalars().all()
        if not rows:
            raise NotFoundError(self.entity)

        comments = [_comment_to_entity(r) for r in rows]
        items, has_next, next_cursor = paginate(comments, limit)
        return entities.CommentList(comments=items, has_next=has_next, cursor=next_cursor)

    async def get_comment_by_id(self, db: AsyncSession, comment_id: int) -> entities.Comment:
        q = (
            select(models.Comment)
            .where(models.Comment.id == comment_id)
            .options(joinedload(models.Comment.author))
            .execution_options(populate_existing=True)
        )
        with self.translate_errors(RepositoryMethod.READ):
            result = await db.execute(q)
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.entity, "id", comment_id)
        return _comment_to_entity(row)

    async def insert_comment(self, db: AsyncSession, comment: entities.Comment) -> int:
        row = models.Comment(
            content=comment.content,
            thread_id=comment.thread_id,
            user_id=comment.author.id,
            **timestamps(comment),
        )
        with self.translate_errors(RepositoryMethod.INSERT):
            db.add(row)
            await db.flush()
        return row.id

    async def update_comment(
        self, db: AsyncSession, comment_id: int, comment: entities.Comment
    ) -> entities.Comment:
        """Overwrite the content of *comment_id* and return the stored row."""
        values = {"content": comment.content}
        if comment.updated_at is not None:
            values["updated_at"] = comment.updated_at
        q = update(models.Comment).where(models.Comment.id == comment_id).values(**values)
        with self.translate_errors(RepositoryMethod.UPDATE):
            result = await db.execute(q)
        if result.rowcount != 1:
            raise NotFoundError(self.entity, "id", comment_id)
        return await self.get_comment_by_id(db, comment_id)

    async def delete_comment(self, db: AsyncSession, comment_id: int) -> None:
        with self.translate_errors(RepositoryMethod.DELETE):
            result = await db.execute(delete(models.Comment).where(models.Comment.id == comment_id))
        if result.rowcount != 1:
            raise NotFoundError(self.entity, "id", comment_id)
