from fastapi import APIRouter, Depends

from app import entities
from app.dependencies import CursorParams, get_current_user, get_thread_service
from app.schemas import ErrorResponse, ThreadCreate, ThreadListResponse, ThreadResponse, ThreadUpdate
from app.services.thread_service import ThreadService

router = APIRouter(
    prefix="/api/v1/threads",
    tags=["threads"],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)

@router.get("", response_model=ThreadListResponse)
async def list_threads(
    page: CursorParams = Depends(),
    threads: ThreadService = Depends(get_thread_service),
):
    return await threads.list_threads(page.limit, page.cursor)

@router.get("/{thread_id}", response_model=ThreadResponse)
async def get_thread(thread_id: int, threads: ThreadService = Depends(get_thread_service)):
    return await threads.get_thread(thread_id)

@router.post("", status_code=201, response_model=ThreadResponse)
async def create_thread(
    data: ThreadCreate,
    _: entities.User = Depends(get_current_user),
    threads: ThreadService = Depends(get_thread_service),
):
    return await threads.create_thread(data)

@router.put("/{thread_id}", response_model=ThreadResponse)
async def update_thread(
    thread_id: int,
    data: ThreadUpdate,
    _: entities.User = Depends(get_current_user),
    threads: ThreadService = Depends(get_thread_service),
):
    return await threads.update_thread(thread_id, data)

@router.delete("/{thread_id}", status_code=204)
async def delete_thread(
    thread_id: int,
    _: entities.User = Depends(get_current_user),
    threads: ThreadService = Depends(get_thread_service),
):
    await threads.delete_thread(thread_id)
