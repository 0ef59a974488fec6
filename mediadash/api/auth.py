from fastapi import APIRouter, Depends, Request, Response, status

from mediadash.api.security import current_user, require_operator_token
from mediadash.config import settings
from mediadash.db import session_scope
from mediadash.models.schemas import LogLevel, LoginRequest, UserRead
from mediadash.repositories.logs import LogRepository
from mediadash.repositories.users import UserRepository

router = APIRouter()


@router.post("/login", response_model=UserRead, dependencies=[Depends(require_operator_token)])
async def login(payload: LoginRequest, response: Response) -> UserRead:
    """Open a dashboard session for the given user, creating the user on first login."""
    with session_scope() as session:
        repo = UserRepository(session)
        repo.purge_expired_sessions()
        user = repo.upsert_by_email(
            payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            profile_image_url=payload.profile_image_url,
        )
        sid = repo.open_session(user.id, ttl_seconds=settings.session_ttl_seconds)
        LogRepository(session).create(
            level=LogLevel.info,
            message="User logged in",
            details=f"Dashboard session opened for {user.email}",
            user_id=user.id,
        )

    response.set_cookie(
        settings.session_cookie_name,
        sid,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: Request, response: Response) -> None:
    sid = request.cookies.get(settings.session_cookie_name)
    if sid:
        with session_scope() as session:
            UserRepository(session).close_session(sid)
    response.delete_cookie(settings.session_cookie_name)


@router.get("/auth/user", response_model=UserRead)
async def get_current_user(user: UserRead = Depends(current_user)) -> UserRead:
    return user
