"""Voter registration CLI commands."""

import asyncio

import typer

voter_app = typer.Typer()


@voter_app.command("create")
def create_voter(
    first_name: str = typer.Option(..., "--first-name", prompt=True, help="First name"),
    last_name: str = typer.Option(..., "--last-name", prompt=True, help="Last name"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    election_id: int | None = typer.Option(None, "--election-id", help="Assign to this election"),
) -> None:
    """Register a voter, optionally assigned to an election."""
    asyncio.run(_create_voter(first_name, last_name, email, password, election_id))


async def _create_voter(
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    election_id: int | None,
) -> None:
    from pydantic import ValidationError

    from ballot_api.core.config import get_settings
    from ballot_api.core.database import create_database
    from ballot_api.schemas.voter import VoterCreateRequest
    from ballot_api.services.election_service import get_election
    from ballot_api.services.voter_service import DuplicateVoterError, create_voter

    try:
        request = VoterCreateRequest(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
            election_id=election_id,
        )
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    settings = get_settings()
    database = create_database(settings.database_url, schema=settings.database_schema)
    try:
        async with database.session() as session:
            if election_id is not None and await get_election(session, election_id) is None:
                typer.echo(f"Error: election {election_id} not found", err=True)
                raise typer.Exit(code=1)
            voter = await create_voter(session, request)
            typer.echo(f"Voter {voter.id} ({voter.email}) registered")
    except DuplicateVoterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await database.dispose()
