from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app import entities, models
from app.errors import NotFoundError, RepositoryMethod
from app.repositories.base import BaseRepository


class SessionRepository(BaseRepository):
    entity = "session"

    async def get_session_by_id(self, db: AsyncSession, session_id: str) -> entities.Session:
        with self.translate_errors(RepositoryMethod.READ):
            result = await db.execute(
                select(models.Session).where(models.Session.id == session_id)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.entity, "id", session_id)
        return entities.Session.model_validate(row)

    async def insert_session(self, db: AsyncSession, session: entities.Session) -> None:
        row = models.Session(id=session.id, user_id=session.user_id)
        if session.created_at is not None:
            row.created_at = session.created_at
        with self.translate_errors(RepositoryMethod.INSERT):
            db.add(row)
            await db.flush()

    async def delete_session(self, db: AsyncSession, session_id: str) -> None:
        """Delete the session row; deleting an unknown id is not an error."""
        with self.translate_errors(RepositoryMethod.DELETE):
            await db.execute(delete(models.Session).where(models.Session.id == session_id))
