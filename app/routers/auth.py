from fastapi import APIRouter, Cookie, Depends, Response

from app import entities
from app.config import settings
from app.dependencies import get_authentication_service, get_current_user
from app.schemas import ErrorResponse, UserCredentials, UserResponse
from app.services.authentication_service import AuthenticationService

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["auth"],
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


def _set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        session_id,
        httponly=True,
        samesite="lax",
        secure=settings.APP_ENV == "production",
    )

@router.post("/signup", status_code=201, response_model=UserResponse)
async def sign_up(
    data: UserCredentials,
    response: Response,
    auth: AuthenticationService = Depends(get_authentication_service),
):
    user = await auth.sign_up(data)
    _set_session_cookie(response, user.session_id)
    return user

@router.post("/login", response_model=UserResponse)
async def login(
    data: UserCredentials,
    response: Response,
    auth: AuthenticationService = Depends(get_authentication_service),
):
    user = await auth.login(data)
    _set_session_cookie(response, user.session_id)
    return user

@router.post("/logout", status_code=204)
async def logout(
    response: Response,
    session_id: str | None = Cookie(None, alias=settings.SESSION_COOKIE_NAME),
    auth: AuthenticationService = Depends(get_authentication_service),
):
    if session_id:
        await auth.logout(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)

@router.get("/me", response_model=UserResponse)
async def me(user: entities.User = Depends(get_current_user)):
    return user
