"""
Authentication service — sign up, login, logout and session lookup.

Design notes
------------
- Every mutating operation runs in one transaction opened through
  ``transaction()``; the uniqueness checks read through the same session
  as the inserts so check and insert see the same snapshot.
- Session ids come from ``IdentityService.new_session_id`` and are checked
  against the ``sessions`` table before use.  A collision regenerates the
  id, at most ``max_session_id_attempts`` times.
- Login failures never say whether the name or the password was wrong.
"""
import logging

from app import entities
from app.errors import (
    AlreadyExistsError,
    AuthenticationFailedError,
    DomainError,
    NotFoundError,
    SessionIDExhaustedError,
)
from app.schemas import UserCredentials
from app.services.clock import Clock, utc_now
from app.services.identity import IdentityService, UserFactory
from app.services.transaction import transaction
from app.services.uniqueness import SessionUniqueness, UserUniqueness
from app.storage import Storage

_logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID_ATTEMPTS = 5


class AuthenticationService:
    def __init__(
        self,
        storage: Storage,
        identity: IdentityService,
        user_factory: UserFactory,
        user_uniqueness: UserUniqueness,
        session_uniqueness: SessionUniqueness,
        *,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
        max_session_id_attempts: int = DEFAULT_SESSION_ID_ATTEMPTS,
    ) -> None:
        self._storage = storage
        self._identity = identity
        self._user_factory = user_factory
        self._user_uniqueness = user_uniqueness
        self._session_uniqueness = session_uniqueness
        self._clock = clock
        self._logger = logger or _logger
        self._max_session_id_attempts = max_session_id_attempts

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def sign_up(self, credentials: UserCredentials) -> entities.User:
        """
        Register a new user and open their first session.

        Raises InvalidParamsError (before any transaction), AlreadyExistsError
        when the name is taken, or RepositoryError / TransactionError.
        """
        user = self._user_factory.new_user(credentials.name, credentials.password)

        try:
            async with transaction(self._storage) as tx:
                if await self._user_uniqueness.exists_by_name(tx, user.name):
                    raise AlreadyExistsError("user", "name", user.name)

                user.session_id = await self._new_session_id(tx)
                user.id = await self._storage.users.insert_user(tx, user)
                await self._storage.sessions.insert_session(
                    tx,
                    entities.Session(id=user.session_id, user_id=user.id, created_at=user.created_at),
                )
        except DomainError as exc:
            raise exc.with_context("failed to sign up")

        self._logger.info("User signed up: id=%d name=%r", user.id, user.name)
        return user

    async def login(self, credentials: UserCredentials) -> entities.User:
        """
        Verify the credentials and replace the user's session with a new one.

        The new session id always differs from the previous one, and the
        previous session row is deleted in the same transaction.
        """
        try:
            async with transaction(self._storage) as tx:
                user = await self._authenticate(tx, credentials.name, credentials.password)
                previous_session_id = user.session_id
                now = self._clock()

                session_id = await self._new_session_id(tx, previous=previous_session_id)
                await self._storage.sessions.insert_session(
                    tx, entities.Session(id=session_id, user_id=user.id, created_at=now)
                )
                if previous_session_id:
                    await self._storage.sessions.delete_session(tx, previous_session_id)

                user.session_id = session_id
                user.updated_at = now
                await self._storage.users.update_user(tx, user.id, user)
        except DomainError as exc:
            raise exc.with_context("failed to login")

        self._logger.info("User logged in: id=%d", user.id)
        return user

    async def logout(self, session_id: str) -> None:
        """End *session_id*.  Unknown ids succeed silently."""
        try:
            async with transaction(self._storage) as tx:
                await self._storage.sessions.delete_session(tx, session_id)
                await self._storage.users.clear_session(tx, session_id)
        except DomainError as exc:
            raise exc.with_context("failed to logout")

    async def authenticate_session(self, session_id: str | None) -> entities.User:
        """Return the user owning *session_id*, or raise AuthenticationFailedError."""
        if not session_id:
            raise AuthenticationFailedError()

        async with self._storage.reader() as db:
            try:
                session = await self._storage.sessions.get_session_by_id(db, session_id)
                return await self._storage.users.get_user_by_id(db, session.user_id)
            except NotFoundError:
                raise AuthenticationFailedError() from None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _authenticate(self, tx, name: str, password: str) -> entities.User:
        try:
            user = await self._storage.users.get_user_by_name(tx, name)
        except NotFoundError:
            self._identity.verify_password(password, self._identity.dummy_hash)
            raise AuthenticationFailedError() from None

        if not self._identity.verify_password(password, user.password):
            raise AuthenticationFailedError()
        return user

    async def _new_session_id(self, tx, previous: str | None = None) -> str:
        """Return a session id not yet present in the sessions table."""
        for attempt in range(1, self._max_session_id_attempts + 1):
            session_id = self._identity.new_session_id()
            if session_id != previous and not await self._session_uniqueness.exists_by_id(
                tx, session_id
            ):
                return session_id
            self._logger.warning("Session id collision (attempt %d), regenerating", attempt)
        raise SessionIDExhaustedError(self._max_session_id_attempts)
