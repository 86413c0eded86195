"""CLI tools for BuildCost administration."""

from uuid import UUID

import click
from pydantic import ValidationError as PydanticValidationError

from buildcost.core.errors import DomainError
from buildcost.db.enums import OrganizationType
from buildcost.db.session import SessionLocal
from buildcost.schemas.org import OrgCreate
from buildcost.schemas.user import UserCreate
from buildcost.services import auth_service, org_service, user_service


@click.group()
def cli():
    """BuildCost CLI tools."""
    pass


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--name", "display_name", required=True, help="Display name")
def create_user(email: str, display_name: str):
    """
    Create a user record.

    Example:
        python -m buildcost.cli create-user --email ana@acme.com --name "Ana Ruiz"
    """
    try:
        data = UserCreate(email=email, display_name=display_name)
    except PydanticValidationError as e:
        raise click.ClickException(str(e))

    db = SessionLocal()
    try:
        user = user_service.create_user(db, data.email, data.display_name)
        db.commit()
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
    except DomainError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.option("--name", required=True, help="Organization name")
@click.option(
    "--type",
    "org_type",
    type=click.Choice([t.value for t in OrganizationType]),
    default=OrganizationType.CONTRACTOR.value,
    show_default=True,
)
@click.option("--admin-email", required=True, help="Email of an existing user who becomes ADMIN")
def create_org(name: str, org_type: str, admin_email: str):
    """
    Create organization with an existing user as its ADMIN.

    Example:
        python -m buildcost.cli create-org --name "Acme Builders" --admin-email ana@acme.com
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, admin_email)
        if not user:
            raise click.ClickException(f"No user with email {admin_email}")
        org = org_service.create_org(db, user, OrgCreate(name=name, type=org_type))
        db.commit()
        click.echo(f"✓ Created organization: {org.name} ({org.type})")
        click.echo(f"  ID: {org.id}")
        click.echo(f"✓ {user.email} is ADMIN")
    except DomainError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--org-id", default=None, help="Active organization (defaults to the oldest membership)")
def issue_token(email: str, org_id: str | None):
    """
    Print a session token for local development and scripted clients.

    Use it as the buildcost_session cookie or an Authorization: Bearer header.
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"No user with email {email}")
        token = auth_service.issue_session(db, user, UUID(org_id) if org_id else None)
        click.echo(token)
    except DomainError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
def revoke_sessions(email: str):
    """Invalidate every session token issued to the user."""
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"No user with email {email}")
        user_service.revoke_sessions(db, user)
        db.commit()
        click.echo(f"✓ Revoked sessions for {user.email} (token version {user.token_version})")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
