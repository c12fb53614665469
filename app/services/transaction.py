"""
Transaction boundary shared by every mutating service operation.

Usage::

    async with transaction(self._storage) as tx:
        ...  # reads and writes through tx

The block's exit is the single place the transaction ends: it is committed
when the block finishes normally and rolled back when anything escapes it,
cancellation included.  A failure while committing or rolling back raises
``TransactionError`` instead of the operation's own result so callers can
tell "the operation failed" apart from "we do not know what was persisted".
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import TransactionError

logger = logging.getLogger(__name__)


async def close_transaction(storage, tx: AsyncSession, error: BaseException | None) -> None:
    """Commit *tx* if *error* is None, otherwise roll it back."""
    if error is None:
        try:
            await storage.commit(tx)
        except Exception as exc:
            logger.error("Commit failed: %s", exc)
            raise TransactionError("commit") from exc
        return

    try:
        await storage.rollback(tx)
    except Exception as exc:
        logger.error("Rollback failed after %r: %s", error, exc)
        raise TransactionError("rollback", operation_error=error) from exc


@asynccontextmanager
async def transaction(storage) -> AsyncIterator[AsyncSession]:
    tx = await storage.begin()
    try:
        yield tx
    except BaseException as exc:
        await close_transaction(storage, tx, exc)
        raise
    await close_transaction(storage, tx, None)
