"""Issued session tokens and their validation.

Tokens are opaque, drawn from ``secrets.token_urlsafe`` and stored as the
primary key of the ``sessions`` table, so a lookup is a single indexed read
and two concurrent issues can never persist the same token.
"""

import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from roster.models.session import UserSession
from roster.models.user import User

TOKEN_BYTES = 32
MAX_TOKEN_LENGTH = 64


class SessionStore:
    def __init__(self, db: AsyncSession, ttl: timedelta):
        self.db = db
        self.ttl = ttl

    async def issue(self, user: User) -> str:
        """Create a new session for ``user`` and return its bearer token."""
        now = datetime.now(timezone.utc)
        token = secrets.token_urlsafe(TOKEN_BYTES)
        self.db.add(
            UserSession(
                token=token,
                user_id=user.id,
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        await self.db.flush()
        return token

    async def validate(self, token: str | None) -> User | None:
        """
        Resolve a bearer token to its user.

        Returns None for a missing, malformed, unknown, revoked or expired
        token. Never raises for a bad token.
        """
        if not token or len(token) > MAX_TOKEN_LENGTH:
            return None

        now = datetime.now(timezone.utc)
        result = await self.db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(UserSession.token == token, UserSession.expires_at > now)
        )
        return result.scalar_one_or_none()

    async def revoke(self, token: str) -> None:
        """Delete the session. Unknown or already revoked tokens are ignored."""
        await self.db.execute(delete(UserSession).where(UserSession.token == token))
        await self.db.flush()
