from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roster.errors import InvalidAssertionError
from roster.models import User, UserSession
from roster.schemas.auth import IdentityAssertion
from roster.services.identity_service import IdentityService
from roster.services.session_store import SessionStore


class TestSessionStore:
    """Tests for issuing, validating and revoking session tokens."""

    @pytest.mark.asyncio
    async def test_issue_and_validate(self, session_store: SessionStore, test_user):
        token = await session_store.issue(test_user)
        assert isinstance(token, str)
        assert len(token) >= 40

        user = await session_store.validate(token)
        assert user is not None
        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_tokens_are_unique(self, session_store: SessionStore, test_user):
        tokens = {await session_store.issue(test_user) for _ in range(20)}
        assert len(tokens) == 20

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "unknown-token", "x" * 500])
    async def test_validate_bad_token(self, session_store: SessionStore, token):
        assert await session_store.validate(token) is None

    @pytest.mark.asyncio
    async def test_revoked_token_is_unauthenticated(
        self, session_store: SessionStore, test_user
    ):
        token = await session_store.issue(test_user)
        await session_store.revoke(token)
        assert await session_store.validate(token) is None

    @pytest.mark.asyncio
    async def test_revoke_is_idempotent(self, session_store: SessionStore, test_user):
        token = await session_store.issue(test_user)
        await session_store.revoke(token)
        await session_store.revoke(token)
        await session_store.revoke("never-issued")
        assert await session_store.validate(token) is None

    @pytest.mark.asyncio
    async def test_revoke_only_affects_one_token(self, session_store: SessionStore, test_user):
        kept = await session_store.issue(test_user)
        dropped = await session_store.issue(test_user)
        await session_store.revoke(dropped)
        assert await session_store.validate(kept) is not None

    @pytest.mark.asyncio
    async def test_expired_token_is_unauthenticated(self, db_session: AsyncSession, test_user):
        store = SessionStore(db_session, ttl=timedelta(hours=-1))
        token = await store.issue(test_user)
        assert await store.validate(token) is None


class TestIdentityService:
    """Tests for find-or-create of users on login."""

    @pytest.fixture
    def identity(self, db_session: AsyncSession, session_store: SessionStore) -> IdentityService:
        return IdentityService(db_session, session_store)

    @pytest.mark.asyncio
    async def test_login_creates_user_and_session(
        self, identity: IdentityService, db_session: AsyncSession
    ):
        result = await identity.login(
            IdentityAssertion(
                display_name="Amal", email="amal@ensat.ac.ma", provider_subject_id="g-123"
            )
        )
        assert result.is_new_user is True
        assert result.user.provider_subject_id == "g-123"
        assert await identity.sessions.validate(result.session_token) is not None

        assert await db_session.scalar(select(func.count()).select_from(User)) == 1
        assert await db_session.scalar(select(func.count()).select_from(UserSession)) == 1

    @pytest.mark.asyncio
    async def test_same_subject_reuses_user(self, identity: IdentityService, db_session):
        assertion = IdentityAssertion(
            display_name="Amal", email="amal@ensat.ac.ma", provider_subject_id="g-123"
        )
        first = await identity.login(assertion)
        second = await identity.login(assertion)

        assert second.is_new_user is False
        assert second.user.id == first.user.id
        assert await db_session.scalar(select(func.count()).select_from(User)) == 1

    @pytest.mark.asyncio
    async def test_missing_display_name_falls_back_to_email(self, identity: IdentityService):
        result = await identity.login(
            IdentityAssertion(email="amal@ensat.ac.ma", provider_subject_id="g-123")
        )
        assert result.user.display_name == "amal"

    @pytest.mark.asyncio
    async def test_blank_subject_id(self, identity: IdentityService, db_session):
        with pytest.raises(InvalidAssertionError):
            await identity.login(
                IdentityAssertion(
                    display_name="Amal", email="amal@ensat.ac.ma", provider_subject_id=""
                )
            )
        assert await db_session.scalar(select(func.count()).select_from(User)) == 0

    @pytest.mark.asyncio
    async def test_logout_revokes(self, identity: IdentityService):
        result = await identity.login(
            IdentityAssertion(
                display_name="Amal", email="amal@ensat.ac.ma", provider_subject_id="g-123"
            )
        )
        await identity.logout(result.session_token)
        assert await identity.sessions.validate(result.session_token) is None
