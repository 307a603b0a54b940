import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster.config import get_settings
from roster.database import get_db
from roster.schemas.auth import (
    AuthStatusResponse,
    IdentityAssertion,
    LoginResponse,
    SessionUserResponse,
    UserSummary,
)
from roster.services.identity_service import IdentityService
from roster.utils.auth import BearerToken, CurrentUser, Sessions
from roster.utils.oidc import verify_id_token

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def _verify_assertion(assertion: IdentityAssertion) -> None:
    """Check the provider ID token when OIDC is configured; otherwise trust the assertion."""
    mode = settings.get_auth_mode()
    if mode == "trusted-assertion":
        return
    if mode != "oidc":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No identity verification configured",
        )

    if not assertion.id_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="idToken is required for authentication",
        )

    try:
        claims = await verify_id_token(
            assertion.id_token,
            settings.oidc_issuer_url,
            settings.oidc_client_id,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from None

    if claims.get("sub") != assertion.provider_subject_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject does not match providerSubjectId",
        )


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status() -> AuthStatusResponse:
    mode = settings.get_auth_mode()
    return AuthStatusResponse(
        configured=mode != "unknown",
        mode=mode,
        error=settings.validate_security(),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    assertion: IdentityAssertion,
    db: Annotated[AsyncSession, Depends(get_db)],
    sessions: Sessions,
) -> LoginResponse:
    await _verify_assertion(assertion)

    result = await IdentityService(db, sessions).login(assertion)
    await db.commit()

    return LoginResponse(
        session_token=result.session_token,
        user=UserSummary(
            id=result.user.id,
            name=result.user.display_name,
            email=result.user.email,
        ),
        is_new_user=result.is_new_user,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: CurrentUser,
    token: BearerToken,
    db: Annotated[AsyncSession, Depends(get_db)],
    sessions: Sessions,
) -> Response:
    await IdentityService(db, sessions).logout(token)
    await db.commit()
    logger.info("User %s logged out", current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/session", response_model=SessionUserResponse)
async def get_session(current_user: CurrentUser) -> SessionUserResponse:
    return SessionUserResponse(
        id=current_user.id,
        name=current_user.display_name,
        email=current_user.email,
        created_at=current_user.created_at,
        last_login_at=current_user.last_login_at,
    )
