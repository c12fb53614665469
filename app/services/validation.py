"""
Field checks run before any transaction is opened.

Each write payload has a pydantic candidate model carrying its field rules.
``validate`` runs one and reports every failing field together as a single
``InvalidParamsError`` so the API answers 400 rather than FastAPI's 422.
"""
from typing import Annotated, TypeVar

from pydantic import BaseModel, NonNegativeInt, PositiveInt, StringConstraints, ValidationError

from app.errors import InvalidParamError, InvalidParamsError

USER_NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
THREAD_TITLE_MAX_LENGTH = 100
COMMENT_CONTENT_MAX_LENGTH = 1000

# Never echoed back in error messages.
SECRET_FIELDS = frozenset({"password"})

M = TypeVar("M", bound=BaseModel)


UserName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=USER_NAME_MAX_LENGTH)
]
Password = Annotated[
    str, StringConstraints(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
]
ThreadTitle = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=THREAD_TITLE_MAX_LENGTH)
]
CommentText = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=COMMENT_CONTENT_MAX_LENGTH),
]


class UserCandidate(BaseModel):
    name: UserName
    password: Password


class ThreadCandidate(BaseModel):
    title: ThreadTitle


class AuthorRef(BaseModel):
    id: PositiveInt


class CommentCandidate(BaseModel):
    content: CommentText
    thread_id: PositiveInt
    author: AuthorRef


class CommentContent(BaseModel):
    content: CommentText


class PageRequest(BaseModel):
    limit: PositiveInt
    cursor: NonNegativeInt


def _param_error(error: dict) -> InvalidParamError:
    name = ".".join(str(part) for part in error["loc"])
    value = "********" if name in SECRET_FIELDS else error.get("input")
    return InvalidParamError(name, value, error["msg"])


def validate(model: type[M], data: dict) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidParamsError([_param_error(e) for e in exc.errors()]) from exc


def validate_page(limit: int, cursor: int) -> None:
    validate(PageRequest, {"limit": limit, "cursor": cursor})
