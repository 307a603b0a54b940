from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from roster.config import get_settings
from roster.database import get_db
from roster.models.user import User
from roster.services.session_store import SessionStore

settings = get_settings()

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthenticated() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_session_store(db: Annotated[AsyncSession, Depends(get_db)]) -> SessionStore:
    return SessionStore(db, ttl=timedelta(hours=settings.session_ttl_hours))


async def get_bearer_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    if not credentials or not credentials.credentials:
        raise _unauthenticated()
    return credentials.credentials


async def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> User:
    """
    Resolve the bearer token to its user.

    Runs before any protected handler body; a missing, unknown, revoked or
    expired token short-circuits with 401.
    """
    user = await sessions.validate(token)
    if user is None:
        raise _unauthenticated()
    return user


# Type aliases for dependency injection
BearerToken = Annotated[str, Depends(get_bearer_token)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Sessions = Annotated[SessionStore, Depends(get_session_store)]
