from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app import entities, models
from app.errors import NotFoundError, RepositoryMethod
from app.repositories.base import BaseRepository, timestamps


class UserRepository(BaseRepository):
    entity = "user"

    async def _get_one(self, db: AsyncSession, column, value, property_name: str) -> entities.User:
        with self.translate_errors(RepositoryMethod.READ):
            result = await db.execute(
                select(models.User)
                .where(column == value)
                .limit(1)
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.entity, property_name, value)
        return entities.User.model_validate(row)

    async def get_user_by_id(self, db: AsyncSession, user_id: int) -> entities.User:
        return await self._get_one(db, models.User.id, user_id, "id")

    async def get_user_by_name(self, db: AsyncSession, name: str) -> entities.User:
        return await self._get_one(db, models.User.name, name, "name")

    async def insert_user(self, db: AsyncSession, user: entities.User) -> int:
        """Insert *user* and return the id the database assigned to it."""
        row = models.User(
            name=user.name,
            session_id=user.session_id,
            password=user.password,
            **timestamps(user),
        )
        with self.translate_errors(RepositoryMethod.INSERT, unique=("name", user.name)):
            db.add(row)
            await db.flush()
        return row.id

    async def update_user(self, db: AsyncSession, user_id: int, user: entities.User) -> None:
        """Persist the mutable columns of *user* (session id, password, updated_at)."""
        q = (
            update(models.User)
            .where(models.User.id == user_id)
            .values(
                session_id=user.session_id,
                password=user.password,
                updated_at=user.updated_at or func.now(),
            )
        )
        with self.translate_errors(RepositoryMethod.UPDATE):
            result = await db.execute(q)
        if result.rowcount != 1:
            raise NotFoundError(self.entity, "id", user_id)

    async def clear_session(self, db: AsyncSession, session_id: str) -> None:
        """Detach *session_id* from whichever user holds it, if any."""
        q = (
            update(models.User)
            .where(models.User.session_id == session_id)
            .values(session_id=None)
        )
        with self.translate_errors(RepositoryMethod.UPDATE):
            await db.execute(q)
