from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app import entities, models
from app.errors import NotFoundError, RepositoryMethod
from app.repositories.base import BaseRepository, limit_for_has_next, paginate, timestamps


class ThreadRepository(BaseRepository):
    entity = "thread"

    async def list_threads(self, db: AsyncSession, limit: int, cursor: int) -> entities.ThreadList:
        """
        Return the page of threads whose ids follow *cursor*, oldest first.

        Raises NotFoundError when the page is empty.
        """
        q = (
            select(models.Thread)
            .where(models.Thread.id > cursor)
            .order_by(models.Thread.id.asc())
            .limit(limit_for_has_next(limit))
        )
        with self.translate_errors(RepositoryMethod.LIST):
            result = await db.execute(q)
            rows = result.scalars().all()
        if not rows:
            raise NotFoundError(self.entity)

        threads = [entities.Thread.model_validate(r) for r in rows]
        items, has_next, next_cursor = paginate(threads, limit)
        return entities.ThreadList(threads=items, has_next=has_next, cursor=next_cursor)

    async def _get_one(self, db: AsyncSession, column, value, property_name: str) -> entities.Thread:
        with self.translate_errors(RepositoryMethod.READ):
            result = await db.execute(
                select(models.Thread)
                .where(column == value)
                .limit(1)
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.entity, property_name, value)
        return entities.Thread.model_validate(row)

    async def get_thread_by_id(self, db: AsyncSession, thread_id: int) -> entities.Thread:
        return await self._get_one(db, models.Thread.id, thread_id, "id")

    async def get_thread_by_title(self, db: AsyncSession, title: str) -> entities.Thread:
        return await self._get_one(db, models.Thread.title, title, "title")

    async def insert_thread(self, db: AsyncSession, thread: entities.Thread) -> int:
        row = models.Thread(title=thread.title, **timestamps(thread))
        with self.translate_errors(RepositoryMethod.INSERT, unique=("title", thread.title)):
            db.add(row)
            await db.flush()
        return row.id

    async def update_thread(
        self, db: AsyncSession, thread_id: int, thread: entities.Thread
    ) -> entities.Thread:
        """Overwrite the title of *thread_id* and return the stored row."""
        values = {"title": thread.title}
        if thread.updated_at is not None:
            values["updated_at"] = thread.updated_at
        q = update(models.Thread).where(models.Thread.id == thread_id).values(**values)
        with self.translate_errors(RepositoryMethod.UPDATE, unique=("title", thread.title)):
            result = await db.execute(q)
        if result.rowcount != 1:
            raise NotFoundError(self.entity, "id", thread_id)
        return await self.get_thread_by_id(db, thread_id)

    async def delete_thread(self, db: AsyncSession, thread_id: int) -> None:
        """Delete the thread together with its comments."""
        with self.translate_errors(RepositoryMethod.DELETE):
            await db.execute(delete(models.Comment).where(models.Comment.thread_id == thread_id))
            result = await db.execute(delete(models.Thread).where(models.Thread.id == thread_id))
        if result.rowcount != 1:
            raise NotFoundError(self.entity, "id", thread_id)
