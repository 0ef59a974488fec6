import logging
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette import status

from mediadash.config import settings
from mediadash.db import session_scope
from mediadash.models.schemas import ApiKeyRead, LogLevel, UserRead
from mediadash.repositories.api_keys import ApiKeyRepository
from mediadash.repositories.logs import LogRepository
from mediadash.repositories.users import UserRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def require_operator_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    """Validate that the caller provides the configured operator token."""
    if credentials is None or credentials.credentials != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing token")
    return credentials.credentials


async def current_user(request: Request) -> UserRead:
    """Resolve the dashboard user from the session cookie."""
    sid = request.cookies.get(settings.session_cookie_name)
    if not sid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    with session_scope() as session:
        user = UserRepository(session).resolve_session(sid)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


async def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> ApiKeyRead:
    """Authenticate an external caller by API key and count the call against its limit."""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid API key")

    with session_scope() as session:
        repo = ApiKeyRepository(session)
        api_key = repo.get_active_by_secret(credentials.credentials)
        if api_key is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

        if not repo.consume_request(api_key.id):
            LogRepository(session).create(
                level=LogLevel.warning,
                message="API key rate limit exceeded",
                details=f"API key {api_key.name} reached its limit of {api_key.request_limit} requests",
                user_id=api_key.user_id,
            )
            logger.info("Rejected request for exhausted API key %s", api_key.id)
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded")

    return api_key

