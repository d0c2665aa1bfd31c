"""Unit tests for voter registration, assignment, listing, import, and removal."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.models import Vote, Voter
from ballot_api.schemas.voter import VoterCreateRequest
from ballot_api.services import voter_service


def _request(**overrides: object) -> VoterCreateRequest:
    data: dict[str, object] = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "password": "password123",
    }
    data.update(overrides)
    return VoterCreateRequest(**data)


class TestCreateVoter:
    async def test_registers_with_hashed_password(self, async_session: AsyncSession) -> None:
        voter = await voter_service.create_voter(async_session, _request())
        assert voter.id is not None
        assert voter.status == "REGISTERED"
        assert voter.election_id is None
        assert voter.hashed_password != "password123"

    async def test_duplicate_email(self, async_session: AsyncSession) -> None:
        await voter_service.create_voter(async_session, _request())
        with pytest.raises(voter_service.DuplicateVoterError):
            await voter_service.create_voter(async_session, _request(first_name="Other"))

    async def test_concurrent_duplicate_maps_to_duplicate_error(self) -> None:
        # Another registration with the same email commits between the lookup and the insert.
        session = AsyncMock()
        session.add = MagicMock()
        lookup = MagicMock()
        lookup.scalar_one_or_none.return_value = None
        session.execute.return_value = lookup
        session.commit.side_effect = IntegrityError("INSERT INTO voters", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(voter_service.DuplicateVoterError, match="jane@example.com"):
            await voter_service.create_voter(session, _request())
        session.rollback.assert_awaited_once()
        session.refresh.assert_not_awaited()


class TestAssignVoter:
    async def test_assigns_election(self, async_session: AsyncSession, seed_ballot) -> None:
        seeded = await seed_ballot(async_session)
        voter = await voter_service.create_voter(async_session, _request())

        voter = await voter_service.assign_voter(async_session, voter, seeded.election_id)

        assert voter.election_id == seeded.election_id

    async def test_voted_voter_cannot_be_reassigned(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        voter_id = await make_voter(async_session, election_id=seeded.election_id, status="VOTED")
        voter = await voter_service.get_voter(async_session, voter_id)

        with pytest.raises(voter_service.VotersAlreadyVotedError) as exc_info:
            await voter_service.assign_voter(async_session, voter, seeded.election_id + 1)
        assert exc_info.value.voter_ids == [voter_id]

    async def test_vote_committed_after_load_blocks_reassignment(
        self, async_session: AsyncSession, seed_ballot, make_voter
    ) -> None:
        seeded = await seed_ballot(async_session)
        other = await seed_ballot(async_session, name="By-election")
        voter_id = await make_voter(async_session, election_id=seeded.election_id)
        voter = await voter_service.get_voter(async_session, voter_id)

        # A ballot submission commits while the admin request holds the loaded voter.
        await async_session.execute(
            update(Voter)
            .where(Voter.id == voter_id)
            .values(status="VOTED")
            .execution_options(synchronize_session=False)
        )
        await async_session.commit()
        assert voter.status == "REGISTERED"

        with pytest.raises(voter_service.VotersAlreadyVotedError) as exc_info:
            await voter_service.assign_voter(async_session, voter, other.election_id)

        assert exc_info.value.voter_ids == [voter_id]
        row = (await async_session.execute(select(Voter.election_id, Voter.status).where(Voter.id == voter_id))).one()
        assert row.election_id == seeded.election_id
        assert row.status == "VOTED"


class TestListElectionVoters:
    async def test_lists_assigned_voters_by_last_name(
        self, async_session: AsyncSession, seed_ballot, make_voter
    ) -> None:
        seeded = await seed_ballot(async_session)
        first = await make_voter(async_session, election_id=seeded.election_id)
        second = await make_voter(async_session, election_id=seeded.election_id, status="VOTED")
        await make_voter(async_session)

        voters, total = await voter_service.list_election_voters(async_session, seeded.election_id)

        assert total == 2
        assert [v.id for v in voters] == [first, second]

    async def test_status_filter_and_paging(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        for _ in range(3):
            await make_voter(async_session, election_id=seeded.election_id)
        voted = await make_voter(async_session, election_id=seeded.election_id, status="VOTED")

        voters, total = await voter_service.list_election_voters(async_session, seeded.election_id, status="VOTED")
        assert total == 1
        assert voters[0].id == voted

        page, total = await voter_service.list_election_voters(async_session, seeded.election_id, page=2, page_size=3)
        assert total == 4
        assert len(page) == 1


class TestImportVoters:
    async def test_imports_unassigned_registered_voters(
        self, async_session: AsyncSession, seed_ballot, make_voter
    ) -> None:
        seeded = await seed_ballot(async_session)
        other = await seed_ballot(async_session, name="By-election")
        fresh = await make_voter(async_session)
        voted = await make_voter(async_session, status="VOTED")
        elsewhere = await make_voter(async_session, election_id=other.election_id)

        count = await voter_service.import_voters(async_session, seeded.election_id)

        assert count == 1
        result = await async_session.execute(
            select(Voter.id, Voter.election_id).where(Voter.id.in_([fresh, voted, elsewhere]))
        )
        rows = dict(result.tuples().all())
        assert rows == {fresh: seeded.election_id, voted: None, elsewhere: other.election_id}

    async def test_imports_only_listed_voters(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        listed = await make_voter(async_session)
        unlisted = await make_voter(async_session)

        count = await voter_service.import_voters(async_session, seeded.election_id, [listed])

        assert count == 1
        assert (await voter_service.get_voter(async_session, unlisted)).election_id is None

    async def test_nothing_to_import(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        await make_voter(async_session, election_id=seeded.election_id)

        with pytest.raises(voter_service.NoVotersToImportError):
            await voter_service.import_voters(async_session, seeded.election_id)


class TestRemoveVoters:
    async def test_unassigns_registered_voters(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        first = await make_voter(async_session, election_id=seeded.election_id)
        second = await make_voter(async_session, election_id=seeded.election_id)
        elsewhere = await make_voter(async_session)

        count = await voter_service.remove_voters_from_election(
            async_session, seeded.election_id, [first, second, elsewhere]
        )

        assert count == 2
        rows = (await async_session.execute(select(Voter.election_id).where(Voter.id.in_([first, second])))).all()
        assert all(row.election_id is None for row in rows)

    async def test_refuses_when_any_voter_voted(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        fresh = await make_voter(async_session, election_id=seeded.election_id)
        voted = await make_voter(async_session, election_id=seeded.election_id, status="VOTED")

        with pytest.raises(voter_service.VotersAlreadyVotedError, match="already voted") as exc_info:
            await voter_service.remove_voters_from_election(async_session, seeded.election_id, [fresh, voted])

        assert exc_info.value.voter_ids == [voted]
        voter = await voter_service.get_voter(async_session, fresh)
        assert voter.election_id == seeded.election_id

    async def test_refuses_when_vote_rows_exist(self, async_session: AsyncSession, seed_ballot, make_voter) -> None:
        seeded = await seed_ballot(async_session)
        voter_id = await make_voter(async_session, election_id=seeded.election_id)
        position_id = seeded.position_ids[0]
        async_session.add(
            Vote(
                voter_id=voter_id,
                election_id=seeded.election_id,
                position_id=position_id,
                candidate_id=seeded.candidates[position_id][0],
            )
        )
        await async_session.commit()

        with pytest.raises(voter_service.VotersAlreadyVotedError):
            await voter_service.remove_voters_from_election(async_session, seeded.election_id, [voter_id])
