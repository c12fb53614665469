# Repositories package.
#
# One class per table.  Every method takes the AsyncSession to run on as its
# first argument so the caller (``app.storage.Storage`` via the application
# services) owns the transaction boundary.  Repositories never commit.
#
#   user_repository     — users by id / name / session id
#   session_repository  — login sessions
#   thread_repository   — threads, cursor-paginated
#   comment_repository  — comments of a thread, cursor-paginated
#
# Lookups that match no row raise ``NotFoundError``; any SQLAlchemy failure
# is re-raised as ``RepositoryError`` chained from the driver exception.
from app.repositories.comment_repository import CommentRepository
from app.repositories.session_repository import SessionRepository
from app.repositories.thread_repository import ThreadRepository
from app.repositories.user_repository import UserRepository

__all__ = ["CommentRepository", "SessionRepository", "ThreadRepository", "UserRepository"]
