from functools import lru_cache

from fastapi import Cookie, Depends, Query

from app import entities
from app.config import settings
from app.services.authentication_service import AuthenticationService
from app.services.comment_service import CommentService
from app.services.identity import IdentityService, UserFactory
from app.services.thread_service import ThreadService
from app.services.uniqueness import (
    CommentUniqueness,
    SessionUniqueness,
    ThreadUniqueness,
    UserUniqueness,
)
from app.storage import Storage, storage


class CursorParams:
    """
    Reusable FastAPI dependency that parses cursor pagination parameters.

    Usage in a router::

        @router.get("/threads")
        async def list_threads(page: CursorParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    cursor:
        Id of the last item of the previous page; 0 starts from the
        beginning.
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description="Number of items returned per page.",
        ),
        cursor: int = Query(
            0,
            ge=0,
            description="Id of the last item already seen (0 for the first page).",
        ),
    ) -> None:
        self.limit = min(limit, settings.MAX_PAGE_SIZE)
        self.cursor = cursor


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------

def get_storage() -> Storage:
    return storage


@lru_cache
def get_identity_service() -> IdentityService:
    return IdentityService()


def get_authentication_service(
    storage: Storage = Depends(get_storage),
    identity: IdentityService = Depends(get_identity_service),
) -> AuthenticationService:
    return AuthenticationService(
        storage,
        identity,
        UserFactory(identity),
        UserUniqueness(storage.users),
        SessionUniqueness(storage.sessions),
        max_session_id_attempts=settings.SESSION_ID_MAX_RETRIES,
    )


def get_thread_service(storage: Storage = Depends(get_storage)) -> ThreadService:
    return ThreadService(storage, ThreadUniqueness(storage.threads))


def get_comment_service(storage: Storage = Depends(get_storage)) -> CommentService:
    return CommentService(storage, CommentUniqueness(storage.comments))


async def get_current_user(
    session_id: str | None = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    auth: AuthenticationService = Depends(get_authentication_service),
) -> entities.User:
    """Resolve the caller from the session cookie; 401 when missing or stale."""
    return await auth.authenticate_session(session_id)
