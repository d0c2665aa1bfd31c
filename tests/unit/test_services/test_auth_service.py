"""Unit tests for administrator and voter authentication."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings
from ballot_api.core.security import create_refresh_token, decode_token
from ballot_api.lib.ballot import AlreadyVotedError, ElectionClosedError, NotAssignedError
from ballot_api.models.user import User
from ballot_api.schemas.auth import UserCreateRequest
from ballot_api.services import auth_service

VOTER_PASSWORD = "correct-horse-battery"


class TestAdminAuthentication:
    async def test_authenticate_user(self, async_session: AsyncSession, sample_user: User) -> None:
        user = await auth_service.authenticate_user(async_session, "testadmin", "testpassword123")
        assert user is not None
        assert user.last_login_at is not None

    async def test_wrong_password(self, async_session: AsyncSession, sample_user: User) -> None:
        assert await auth_service.authenticate_user(async_session, "testadmin", "nope") is None

    async def test_unknown_user(self, async_session: AsyncSession) -> None:
        assert await auth_service.authenticate_user(async_session, "ghost", "whatever") is None

    async def test_create_user_and_duplicate(self, async_session: AsyncSession) -> None:
        request = UserCreateRequest(username="bob", email="bob@example.com", password="password123", role="viewer")
        user = await auth_service.create_user(async_session, request)
        assert user.role == "viewer"
        with pytest.raises(auth_service.DuplicateUserError):
            await auth_service.create_user(async_session, request)

    async def test_list_users(self, async_session: AsyncSession, sample_user: User) -> None:
        users, total = await auth_service.list_users(async_session)
        assert total == 1
        assert users[0].username == "testadmin"

    async def test_refresh_access_token(self, async_session: AsyncSession, sample_user: User, settings: Settings) -> None:
        refresh = create_refresh_token("testadmin", settings.jwt_secret_key)
        tokens = await auth_service.refresh_access_token(async_session, refresh, settings)
        payload = decode_token(tokens.access_token, settings.jwt_secret_key)
        assert payload["sub"] == "testadmin"
        assert tokens.expires_in == 30 * 60

    async def test_refresh_rejects_access_token(
        self, async_session: AsyncSession, settings: Settings, admin_token: str
    ) -> None:
        with pytest.raises(ValueError, match="not a refresh token"):
            await auth_service.refresh_access_token(async_session, admin_token, settings)


class TestVoterLogin:
    async def test_issues_voter_token(self, async_session: AsyncSession, settings: Settings, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        voter_id = await make_voter(async_session, election_id=seeded.election_id, email="v@example.com")

        response = await auth_service.authenticate_voter(async_session, "v@example.com", VOTER_PASSWORD, settings)

        assert response is not None
        assert response.voter_id == voter_id
        assert response.election_id == seeded.election_id
        assert response.expires_in == 60 * 60
        payload = decode_token(response.access_token, settings.jwt_secret_key)
        assert payload["sub"] == str(voter_id)
        assert payload["role"] == "voter"

    async def test_bad_credentials(self, async_session: AsyncSession, settings: Settings, make_voter) -> None:
        await make_voter(async_session, email="v@example.com")
        assert await auth_service.authenticate_voter(async_session, "v@example.com", "wrong", settings) is None
        assert await auth_service.authenticate_voter(async_session, "nobody@example.com", "x", settings) is None

    async def test_unassigned_voter(self, async_session: AsyncSession, settings: Settings, make_voter) -> None:
        await make_voter(async_session, email="v@example.com")
        with pytest.raises(NotAssignedError):
            await auth_service.authenticate_voter(async_session, "v@example.com", VOTER_PASSWORD, settings)

    async def test_voted_voter(self, async_session: AsyncSession, settings: Settings, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        await make_voter(async_session, election_id=seeded.election_id, status="VOTED", email="v@example.com")
        with pytest.raises(AlreadyVotedError):
            await auth_service.authenticate_voter(async_session, "v@example.com", VOTER_PASSWORD, settings)

    async def test_closed_election(self, async_session: AsyncSession, settings: Settings, seed_ballot, make_voter) -> None:
        now = datetime.now(UTC)
        seeded = await seed_ballot(
            async_session, start_date=now - timedelta(days=2), end_date=now - timedelta(days=1)
        )
        await make_voter(async_session, election_id=seeded.election_id, email="v@example.com")
        with pytest.raises(ElectionClosedError):
            await auth_service.authenticate_voter(async_session, "v@example.com", VOTER_PASSWORD, settings)

    async def test_inactive_election(self, async_session: AsyncSession, settings: Settings, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session, status="INACTIVE")
        await make_voter(async_session, election_id=seeded.election_id, email="v@example.com")
        with pytest.raises(ElectionClosedError):
            await auth_service.authenticate_voter(async_session, "v@example.com", VOTER_PASSWORD, settings)
