"""
Domain error taxonomy.

Every error raised by the repositories or the application services derives
from ``DomainError``.  The kind of an error never changes as it travels up
through the layers; each layer only appends a short description of what it
was doing via ``with_context`` so the final message reads like a trail::

    failed to create thread: failed to insert thread: failed Repository operation, INSERT, thread

``status_code`` and ``kind`` are consumed by the exception handlers in
``app.main``; ``message`` is the only text ever shown to API clients.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class RepositoryMethod(str, Enum):
    READ = "READ"
    LIST = "LIST"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class DomainError(Exception):
    """Base class for all errors the API knows how to report."""

    status_code: int = 500
    kind: str = "InternalError"

    def __init__(self, message: str) -> None:
        self.message = message
        self.context: list[str] = []
        super().__init__(message)

    def with_context(self, description: str) -> "DomainError":
        """Record *description* as the outermost step of the error trail."""
        self.context.insert(0, description)
        return self

    def __str__(self) -> str:
        return ": ".join([*self.context, self.message])


class AlreadyExistsError(DomainError):
    status_code = 409
    kind = "AlreadyExists"

    def __init__(self, entity: str, property_name: str, value: Any) -> None:
        self.entity = entity
        self.property_name = property_name
        self.value = value
        super().__init__(f"{property_name}, {entity}, is already exists")


class NotFoundError(DomainError):
    status_code = 404
    kind = "NotFound"

    def __init__(self, entity: str, property_name: str | None = None, value: Any = None) -> None:
        self.entity = entity
        self.property_name = property_name
        self.value = value
        if property_name is None:
            super().__init__(f"no such data, {entity}")
        else:
            super().__init__(f"no such data, {property_name}: {value}, {entity}")


class AuthenticationFailedError(DomainError):
    status_code = 401
    kind = "AuthenticationFailed"

    def __init__(self) -> None:
        # Same message for unknown names and wrong passwords.
        super().__init__("invalid name or password")


class RepositoryError(DomainError):
    """
    Wraps a storage-layer failure.

    The original driver exception is always available as ``__cause__``
    (raise it with ``raise RepositoryError(...) from exc``).
    """

    kind = "RepositoryError"

    def __init__(self, method: RepositoryMethod, entity: str) -> None:
        self.method = method
        self.entity = entity
        super().__init__(f"failed Repository operation, {method.value}, {entity}")


class InvalidParamError(DomainError):
    status_code = 400
    kind = "InvalidParam"

    def __init__(self, property_name: str, value: Any, reason: str) -> None:
        self.property_name = property_name
        self.value = value
        self.reason = reason
        super().__init__(f"{property_name}, {value!r}, is invalid, {reason}")


class InvalidParamsError(DomainError):
    status_code = 400
    kind = "InvalidParams"

    def __init__(self, errors: list[InvalidParamError]) -> None:
        self.errors = errors
        super().__init__(",".join(e.message for e in errors))


class TransactionError(DomainError):
    """
    Raised when a transaction cannot be opened or closed.

    ``phase`` is one of ``"begin"``, ``"commit"`` or ``"rollback"``.
    ``operation_error`` is the error the operation itself raised before the
    failed rollback, or None when the operation succeeded and the commit
    failed.  Both cases leave the caller unsure what was persisted, so they
    are reported apart from ordinary operation errors.
    """

    kind = "TransactionError"

    def __init__(self, phase: str, operation_error: BaseException | None = None) -> None:
        self.phase = phase
        self.operation_error = operation_error
        super().__init__(f"failed to {phase} transaction")


class SessionIDExhaustedError(DomainError):
    kind = "SessionIDExhausted"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"could not generate a unique session id after {attempts} attempts")
