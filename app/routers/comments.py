from fastapi import APIRouter, Depends

from app import entities
from app.dependencies import (
    CursorParams,
    get_comment_service,
    get_current_user,
    get_thread_service,
)
from app.errors import NotFoundError
from app.schemas import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    ErrorResponse,
)
from app.services.comment_service import CommentService
from app.services.thread_service import ThreadService

router = APIRouter(
    prefix="/api/v1/threads/{thread_id}/comments",
    tags=["comments"],
    responses={404: {"model": ErrorResponse}},
)


async def _comment_in_thread(
    comments: CommentService, thread_id: int, comment_id: int
) -> entities.Comment:
    comment = await comments.get_comment(comment_id)
    if comment.thread_id != thread_id:
        raise NotFoundError("comment", "id", comment_id)
    return comment

@router.get("", response_model=CommentListResponse)
async def list_comments(
    thread_id: int,
    page: CursorParams = Depends(),
    comments: CommentService = Depends(get_comment_service),
):
    return await comments.list_comments(thread_id, page.limit, page.cursor)

@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    thread_id: int,
    comment_id: int,
    comments: CommentService = Depends(get_comment_service),
):
    return await _comment_in_thread(comments, thread_id, comment_id)

@router.post("", status_code=201, response_model=CommentResponse)
async def create_comment(
    thread_id: int,
    data: CommentCreate,
    user: entities.User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
    threads: ThreadService = Depends(get_thread_service),
):
    # 404 rather than a foreign-key failure for an unknown thread.
    await threads.get_thread(thread_id)
    candidate = entities.Comment(
        content=data.content,
        thread_id=thread_id,
        author=entities.Author(id=user.id, name=user.name),
    )
    return await comments.create_comment(candidate)

@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    thread_id: int,
    comment_id: int,
    data: CommentUpdate,
    _: entities.User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    await _comment_in_thread(comments, thread_id, comment_id)
    return await comments.update_comment(comment_id, data)

@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    thread_id: int,
    comment_id: int,
    _: entities.User = Depends(get_current_user),
    comments: CommentService = Depends(get_comment_service),
):
    await _comment_in_thread(comments, thread_id, comment_id)
    await comments.delete_comment(comment_id)
