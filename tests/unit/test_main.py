"""Tests for the FastAPI application factory module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from ballot_api.core.config import Settings
from ballot_api.lib.ballot import (
    AlreadyVotedError,
    BallotRejection,
    ElectionClosedError,
    InvalidSelectionError,
    NotAssignedError,
    TransientStoreFailure,
    VoterNotFoundError,
)
from ballot_api.main import create_app, lifespan, rejection_status_code


def _settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
    )


class TestCreateApp:
    """Tests for create_app."""

    @pytest.fixture
    def app(self):
        with patch("ballot_api.main.get_settings", return_value=_settings()):
            return create_app()

    def test_app_is_created(self, app) -> None:
        assert app.title == "Ballot API"

    def test_app_has_openapi_schema(self, app) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/openapi.json")
        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/ballot/submit" in paths
        assert "/api/v1/elections/{election_id}/voters/remove" in paths

    def test_handlers_registered(self, app) -> None:
        assert app.exception_handlers.get(ValueError) is not None
        assert app.exception_handlers.get(BallotRejection) is not None


class TestRejectionStatusCode:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (VoterNotFoundError(), 404),
            (NotAssignedError(), 403),
            (AlreadyVotedError(), 409),
            (ElectionClosedError(), 409),
            (InvalidSelectionError(), 422),
            (TransientStoreFailure(), 503),
            (BallotRejection(), 400),
        ],
    )
    def test_mapping(self, error: BallotRejection, expected: int) -> None:
        assert rejection_status_code(error) == expected

    def test_subclass_inherits_mapping(self) -> None:
        class LateVoteError(ElectionClosedError):
            pass

        assert rejection_status_code(LateVoteError()) == 409


class TestAppLifespan:
    """Tests for lifespan management."""

    async def test_lifespan_creates_and_disposes_database(self) -> None:
        """Lifespan creates the database handle on app.state and disposes it."""
        app = MagicMock()
        database = MagicMock()
        database.dispose = AsyncMock()

        with (
            patch("ballot_api.main.get_settings", return_value=_settings()),
            patch("ballot_api.main.setup_logging") as mock_setup_logging,
            patch("ballot_api.main.create_database", return_value=database) as mock_create_database,
        ):
            async with lifespan(app):
                mock_setup_logging.assert_called_once()
                mock_create_database.assert_called_once()
                assert app.state.database is database

        database.dispose.assert_awaited_once()
        assert app.state.database is None
