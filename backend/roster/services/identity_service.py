import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster.errors import InvalidAssertionError
from roster.models.user import User
from roster.schemas.auth import IdentityAssertion
from roster.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    session_token: str
    user: User
    is_new_user: bool


class IdentityService:
    """Turns a trusted identity assertion into a local user and a fresh session."""

    def __init__(self, db: AsyncSession, sessions: SessionStore):
        self.db = db
        self.sessions = sessions

    async def get_by_provider_subject_id(self, provider_subject_id: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.provider_subject_id == provider_subject_id)
        )
        return result.scalar_one_or_none()

    async def sync_user(self, assertion: IdentityAssertion) -> tuple[User, bool]:
        """
        Find or create the user keyed by provider subject id.

        Email and display name are claims, refreshed from the assertion on every
        login. Returns (user, is_new_user).
        """
        subject_id = (assertion.provider_subject_id or "").strip()
        if not subject_id:
            raise InvalidAssertionError("providerSubjectId is required")

        email = assertion.email.strip()
        display_name = (assertion.display_name or "").strip() or email.split("@")[0] or subject_id
        now = datetime.now(timezone.utc)

        user = await self.get_by_provider_subject_id(subject_id)
        if user is None:
            user = User(
                provider_subject_id=subject_id,
                email=email,
                display_name=display_name,
                last_login_at=now,
            )
            self.db.add(user)
            await self.db.flush()
            await self.db.refresh(user)
            return user, True

        user.email = email
        user.display_name = display_name
        user.last_login_at = now
        await self.db.flush()
        await self.db.refresh(user)
        return user, False

    async def login(self, assertion: IdentityAssertion) -> LoginResult:
        user, is_new = await self.sync_user(assertion)
        token = await self.sessions.issue(user)
        logger.info("User %s logged in (new=%s)", user.id, is_new)
        return LoginResult(session_token=token, user=user, is_new_user=is_new)

    async def logout(self, token: str) -> None:
        await self.sessions.revoke(token)
