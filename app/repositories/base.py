from contextlib import contextmanager
from typing import Any, Iterator, Sequence, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.errors import AlreadyExistsError, RepositoryError, RepositoryMethod

T = TypeVar("T")


class BaseRepository:
    """Shared error translation for the table repositories."""

    entity: str = ""

    @contextmanager
    def translate_errors(
        self,
        method: RepositoryMethod,
        unique: tuple[str, Any] | None = None,
    ) -> Iterator[None]:
        """
        Re-raise any SQLAlchemy failure inside the block as ``RepositoryError``.

        When *unique* names the ``(property, value)`` the block writes under a
        UNIQUE constraint, an integrity violation is reported as
        ``AlreadyExistsError`` instead: another transaction inserted the same
        value after this one checked for it.
        """
        try:
            yield
        except IntegrityError as exc:
            if unique is None:
                raise RepositoryError(method, self.entity) from exc
            raise AlreadyExistsError(self.entity, *unique) from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(method, self.entity) from exc


def timestamps(entity) -> dict:
    """
    ``created_at`` / ``updated_at`` values set on *entity*, for an INSERT.

    Unset stamps are left out so the column's server default applies.
    """
    return {
        name: getattr(entity, name)
        for name in ("created_at", "updated_at")
        if getattr(entity, name, None) is not None
    }


def limit_for_has_next(limit: int) -> int:
    """Number of rows to fetch so one extra row reveals a following page."""
    return limit + 1


def paginate(rows: Sequence[T], limit: int) -> tuple[list[T], bool, int]:
    """
    Trim a ``limit + 1`` fetch down to one page.

    Returns ``(items, has_next, cursor)``.  When the extra row is present it
    is dropped, ``has_next`` is True and the cursor is the id of the last
    row kept, so the next call resumes right after it.  Otherwise the cursor
    resets to 0, meaning there are no more pages.
    """
    if len(rows) >= limit_for_has_next(limit):
        items = list(rows[:limit])
        return items, True, items[-1].id
    return list(rows), False, 0
