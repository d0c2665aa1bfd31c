"""Administrator account CLI commands."""

import asyncio

import typer

user_app = typer.Typer()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: str = typer.Option("admin", prompt=True, help="Role (admin/viewer)"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if the user already exists (idempotent mode)",
    ),
) -> None:
    """Create an administrator account."""
    asyncio.run(_create_user(username, email, password, role, if_not_exists=if_not_exists))


async def _create_user(
    username: str,
    email: str,
    password: str,
    role: str,
    *,
    if_not_exists: bool = False,
) -> None:
    from pydantic import ValidationError

    from ballot_api.core.config import get_settings
    from ballot_api.core.database import create_database
    from ballot_api.schemas.auth import UserCreateRequest
    from ballot_api.services.auth_service import DuplicateUserError, create_user

    try:
        request = UserCreateRequest(username=username, email=email, password=password, role=role)
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    settings = get_settings()
    database = create_database(settings.database_url, schema=settings.database_schema)
    try:
        async with database.session() as session:
            user = await create_user(session, request)
            typer.echo(f"User '{user.username}' created with role '{user.role}'")
    except DuplicateUserError as e:
        if if_not_exists:
            typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
            return
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    finally:
        await database.dispose()


@user_app.command("list")
def list_users() -> None:
    """List administrator accounts."""
    asyncio.run(_list_users())


async def _list_users() -> None:
    from ballot_api.core.config import get_settings
    from ballot_api.core.database import create_database
    from ballot_api.services.auth_service import list_users

    settings = get_settings()
    database = create_database(settings.database_url, schema=settings.database_schema)
    try:
        async with database.session() as session:
            users, total = await list_users(session, page_size=100)
            typer.echo(f"{'Username':<20} {'Email':<30} {'Role':<10} {'Active':<8}")
            typer.echo("-" * 68)
            for user in users:
                typer.echo(f"{user.username:<20} {user.email:<30} {user.role:<10} {user.is_active!s:<8}")
            typer.echo(f"\nTotal: {total}")
    finally:
        await database.dispose()
