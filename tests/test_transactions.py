"""
Transaction-boundary tests with mocked collaborators.

The storage, repositories and identity service are ``AsyncMock`` /
``MagicMock`` stand-ins, so these tests can assert exactly which calls an
operation made: that failed existence checks never reach the mutation, that
success commits once, that failure rolls back, and how session ids are
retried.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, sentinel

import pytest
from sqlalchemy.exc import OperationalError

from app import entities
from app.config import settings
from app.dependencies import get_authentication_service
from app.errors import (
    AlreadyExistsError,
    AuthenticationFailedError,
    NotFoundError,
    RepositoryError,
    RepositoryMethod,
    SessionIDExhaustedError,
    TransactionError,
)
from app.schemas import CommentUpdate, ThreadCreate, ThreadUpdate, UserCredentials
from app.services.authentication_service import AuthenticationService
from app.services.comment_service import CommentService
from app.services.thread_service import ThreadService
from app.services.uniqueness import (
    CommentUniqueness,
    SessionUniqueness,
    ThreadUniqueness,
    UserUniqueness,
)

NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _storage() -> MagicMock:
    storage = MagicMock()
    storage.begin = AsyncMock(return_value=sentinel.tx)
    storage.commit = AsyncMock()
    storage.rollback = AsyncMock()
    storage.users = AsyncMock()
    storage.sessions = AsyncMock()
    storage.threads = AsyncMock()
    storage.comments = AsyncMock()
    return storage


def _thread_service(storage) -> ThreadService:
    return ThreadService(storage, ThreadUniqueness(storage.threads), clock=lambda: NOW)


def _comment_service(storage) -> CommentService:
    return CommentService(storage, CommentUniqueness(storage.comments), clock=lambda: NOW)


def _auth_service(storage, identity, attempts: int = 5) -> AuthenticationService:
    user_factory = MagicMock()
    user_factory.new_user.side_effect = lambda name, password: entities.User(
        name=name, password=f"hashed:{password}", created_at=NOW, updated_at=NOW
    )
    return AuthenticationService(
        storage,
        identity,
        user_factory,
        UserUniqueness(storage.users),
        SessionUniqueness(storage.sessions),
        clock=lambda: NOW,
        max_session_id_attempts=attempts,
    )


def _identity(*session_ids: str) -> MagicMock:
    identity = MagicMock()
    identity.new_session_id.side_effect = list(session_ids)
    identity.verify_password.return_value = True
    identity.dummy_hash = "dummy"
    return identity


def _sessions_taken(*taken: str):
    async def lookup(tx, session_id):
        if session_id in taken:
            return entities.Session(id=session_id, user_id=1)
        raise NotFoundError("session", "id", session_id)
    return lookup


def _assert_committed(storage) -> None:
    storage.commit.assert_awaited_once_with(sentinel.tx)
    storage.rollback.assert_not_awaited()


def _assert_rolled_back(storage) -> None:
    storage.rollback.assert_awaited_once_with(sentinel.tx)
    storage.commit.assert_not_awaited()


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_thread_commits_once():
    storage = _storage()
    storage.threads.get_thread_by_title.side_effect = NotFoundError("thread", "title", "t")
    storage.threads.insert_thread.return_value = 11

    thread = await _thread_service(storage).create_thread(ThreadCreate(title="t"))

    assert thread.id == 11
    assert thread.created_at == thread.updated_at == NOW
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_create_thread_duplicate_title_never_inserts():
    storage = _storage()
    storage.threads.get_thread_by_title.return_value = entities.Thread(id=1, title="t")

    with pytest.raises(AlreadyExistsError) as excinfo:
        await _thread_service(storage).create_thread(ThreadCreate(title="t"))

    assert excinfo.value.property_name == "title"
    storage.threads.insert_thread.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_create_thread_aborts_on_uniqueness_check_failure():
    storage = _storage()
    storage.threads.get_thread_by_title.side_effect = RepositoryError(RepositoryMethod.READ, "thread")

    with pytest.raises(RepositoryError):
        await _thread_service(storage).create_thread(ThreadCreate(title="t"))

    storage.threads.insert_thread.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_create_thread_insert_failure_rolls_back():
    storage = _storage()
    storage.threads.get_thread_by_title.side_effect = NotFoundError("thread", "title", "t")
    storage.threads.insert_thread.side_effect = RepositoryError(RepositoryMethod.INSERT, "thread")

    with pytest.raises(RepositoryError) as excinfo:
        await _thread_service(storage).create_thread(ThreadCreate(title="t"))

    assert excinfo.value.method is RepositoryMethod.INSERT
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_update_missing_thread_never_updates():
    storage = _storage()
    storage.threads.get_thread_by_id.side_effect = NotFoundError("thread", "id", 9)

    with pytest.raises(NotFoundError):
        await _thread_service(storage).update_thread(9, ThreadUpdate(title="x"))

    storage.threads.update_thread.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_update_thread_aborts_on_existence_check_failure():
    storage = _storage()
    storage.threads.get_thread_by_id.side_effect = RepositoryError(RepositoryMethod.READ, "thread")

    with pytest.raises(RepositoryError):
        await _thread_service(storage).update_thread(9, ThreadUpdate(title="x"))

    storage.threads.update_thread.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_thread_failure_rolls_back():
    storage = _storage()
    storage.threads.get_thread_by_id.return_value = entities.Thread(id=9, title="old")
    storage.threads.get_thread_by_title.side_effect = NotFoundError("thread", "title", "x")
    storage.threads.update_thread.side_effect = RepositoryError(RepositoryMethod.UPDATE, "thread")

    with pytest.raises(RepositoryError):
        await _thread_service(storage).update_thread(9, ThreadUpdate(title="x"))

    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_update_thread_passes_stamped_copy():
    storage = _storage()
    storage.threads.get_thread_by_id.return_value = entities.Thread(id=9, title="old")
    storage.threads.get_thread_by_title.side_effect = NotFoundError("thread", "title", "x")
    storage.threads.update_thread.return_value = entities.Thread(id=9, title="x", updated_at=NOW)

    result = await _thread_service(storage).update_thread(9, ThreadUpdate(title="x"))

    _, thread_id, sent = storage.threads.update_thread.await_args.args
    assert thread_id == 9
    assert (sent.id, sent.title, sent.updated_at) == (9, "x", NOW)
    assert result.title == "x"
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_delete_missing_thread_never_deletes():
    storage = _storage()
    storage.threads.get_thread_by_id.side_effect = NotFoundError("thread", "id", 9)

    with pytest.raises(NotFoundError):
        await _thread_service(storage).delete_thread(9)

    storage.threads.delete_thread.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_delete_thread_commits_once():
    storage = _storage()
    storage.threads.get_thread_by_id.return_value = entities.Thread(id=9, title="t")

    await _thread_service(storage).delete_thread(9)

    storage.threads.delete_thread.assert_awaited_once_with(sentinel.tx, 9)
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_list_threads_opens_no_transaction():
    storage = _storage()
    reader = MagicMock()
    reader.__aenter__ = AsyncMock(return_value=sentinel.db)
    reader.__aexit__ = AsyncMock(return_value=False)
    storage.reader.return_value = reader
    storage.threads.list_threads.return_value = entities.ThreadList()

    await _thread_service(storage).list_threads(20, 0)

    storage.threads.list_threads.assert_awaited_once_with(sentinel.db, 20, 0)
    storage.begin.assert_not_awaited()


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_comment_stamps_at_service_boundary():
    storage = _storage()
    storage.comments.insert_comment.return_value = 1

    comment = await _comment_service(storage).create_comment(
        entities.Comment(content="hi", thread_id=5, author=entities.Author(id=7))
    )

    assert (comment.id, comment.thread_id, comment.author.id) == (1, 5, 7)
    assert comment.created_at == comment.updated_at == NOW
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_update_missing_comment_never_updates():
    storage = _storage()
    storage.comments.get_comment_by_id.side_effect = NotFoundError("comment", "id", 3)

    with pytest.raises(NotFoundError):
        await _comment_service(storage).update_comment(3, CommentUpdate(content="x"))

    storage.comments.update_comment.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_update_comment_reads_the_row_once():
    storage = _storage()
    current = entities.Comment(id=3, content="old", thread_id=1, author=entities.Author(id=2))
    storage.comments.get_comment_by_id.return_value = current
    storage.comments.update_comment.side_effect = lambda tx, comment_id, comment: comment

    updated = await _comment_service(storage).update_comment(3, CommentUpdate(content="new"))

    storage.comments.get_comment_by_id.assert_awaited_once_with(sentinel.tx, 3)
    assert (updated.content, updated.updated_at) == ("new", NOW)
    assert current.content == "old"
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_delete_missing_comment_never_deletes():
    storage = _storage()
    storage.comments.get_comment_by_id.side_effect = NotFoundError("comment", "id", 3)

    with pytest.raises(NotFoundError):
        await _comment_service(storage).delete_comment(3)

    storage.comments.delete_comment.assert_not_awaited()
    _assert_rolled_back(storage)


# ---------------------------------------------------------------------------
# Transaction close failures
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_commit_failure_is_reported_as_transaction_error():
    storage = _storage()
    storage.threads.get_thread_by_id.return_value = entities.Thread(id=9, title="t")
    storage.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

    with pytest.raises(TransactionError) as excinfo:
        await _thread_service(storage).delete_thread(9)

    assert excinfo.value.phase == "commit"
    assert excinfo.value.operation_error is None
    assert isinstance(excinfo.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_rollback_failure_keeps_operation_error():
    storage = _storage()
    storage.threads.get_thread_by_id.side_effect = NotFoundError("thread", "id", 9)
    storage.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("connection lost"))

    with pytest.raises(TransactionError) as excinfo:
        await _thread_service(storage).delete_thread(9)

    assert excinfo.value.phase == "rollback"
    assert isinstance(excinfo.value.operation_error, NotFoundError)


@pytest.mark.asyncio
async def test_begin_failure_touches_nothing():
    storage = _storage()
    storage.begin.side_effect = TransactionError("begin")

    with pytest.raises(TransactionError):
        await _thread_service(storage).delete_thread(9)

    storage.threads.get_thread_by_id.assert_not_awaited()
    storage.commit.assert_not_awaited()
    storage.rollback.assert_not_awaited()


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_sign_up_regenerates_colliding_session_id():
    storage = _storage()
    storage.users.get_user_by_name.side_effect = NotFoundError("user", "name", "alice")
    storage.users.insert_user.return_value = 7
    storage.sessions.get_session_by_id.side_effect = _sessions_taken("dup")
    identity = _identity("dup", "fresh")

    user = await _auth_service(storage, identity).sign_up(
        UserCredentials(name="alice", password="correct-horse")
    )

    assert (user.id, user.session_id) == (7, "fresh")
    inserted = storage.sessions.insert_session.await_args.args[1]
    assert (inserted.id, inserted.user_id) == ("fresh", 7)
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_sign_up_gives_up_after_max_session_id_attempts():
    storage = _storage()
    storage.users.get_user_by_name.side_effect = NotFoundError("user", "name", "alice")
    storage.sessions.get_session_by_id.side_effect = _sessions_taken("dup")
    identity = _identity(*["dup"] * 3)

    with pytest.raises(SessionIDExhaustedError):
        await _auth_service(storage, identity, attempts=3).sign_up(
            UserCredentials(name="alice", password="correct-horse")
        )

    storage.users.insert_user.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_sign_up_duplicate_name_never_inserts():
    storage = _storage()
    storage.users.get_user_by_name.return_value = entities.User(id=1, name="alice")

    with pytest.raises(AlreadyExistsError):
        await _auth_service(storage, _identity("s1")).sign_up(
            UserCredentials(name="alice", password="correct-horse")
        )

    storage.users.insert_user.assert_not_awaited()
    storage.sessions.insert_session.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_login_never_reuses_previous_session_id():
    storage = _storage()
    storage.users.get_user_by_name.return_value = entities.User(
        id=3, name="bob", password="hashed", session_id="old"
    )
    storage.sessions.get_session_by_id.side_effect = _sessions_taken()
    identity = _identity("old", "new")

    user = await _auth_service(storage, identity).login(
        UserCredentials(name="bob", password="correct-horse")
    )

    assert user.session_id == "new"
    storage.sessions.delete_session.assert_awaited_once_with(sentinel.tx, "old")
    updated = storage.users.update_user.await_args.args[2]
    assert (updated.session_id, updated.updated_at) == ("new", NOW)
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_login_unknown_user_checks_dummy_hash():
    storage = _storage()
    storage.users.get_user_by_name.side_effect = NotFoundError("user", "name", "ghost")
    identity = _identity("s1")

    with pytest.raises(AuthenticationFailedError):
        await _auth_service(storage, identity).login(
            UserCredentials(name="ghost", password="whatever")
        )

    identity.verify_password.assert_called_once_with("whatever", "dummy")
    storage.sessions.insert_session.assert_not_awaited()
    _assert_rolled_back(storage)


@pytest.mark.asyncio
async def test_login_wrong_password():
    storage = _storage()
    storage.users.get_user_by_name.return_value = entities.User(id=3, name="bob", password="hashed")
    identity = _identity("s1")
    identity.verify_password.return_value = False

    with pytest.raises(AuthenticationFailedError):
        await _auth_service(storage, identity).login(UserCredentials(name="bob", password="nope"))

    storage.users.update_user.assert_not_awaited()


@pytest.mark.asyncio
async def test_logout_commits_even_without_a_session_row():
    storage = _storage()

    await _auth_service(storage, _identity()).logout("unknown")

    storage.sessions.delete_session.assert_awaited_once_with(sentinel.tx, "unknown")
    storage.users.clear_session.assert_awaited_once_with(sentinel.tx, "unknown")
    _assert_committed(storage)


@pytest.mark.asyncio
async def test_session_id_cap_comes_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "SESSION_ID_MAX_RETRIES", 2)
    storage = _storage()
    storage.users.get_user_by_name.side_effect = NotFoundError("user", "name", "alice")
    storage.sessions.get_session_by_id.side_effect = _sessions_taken("dup")
    identity = _identity("dup", "dup", "fresh")
    identity.hash_password.return_value = "hashed"

    auth = get_authentication_service(storage, identity)
    with pytest.raises(SessionIDExhaustedError) as excinfo:
        await auth.sign_up(UserCredentials(name="alice", password="correct-horse"))

    assert excinfo.value.attempts == 2
    assert identity.new_session_id.call_count == 2
