"""CLI tools for advisor desk administration."""

import logging

import click

from advisor_desk.core.errors import ConflictError
from advisor_desk.db.enums import Role
from advisor_desk.db.session import SessionLocal
from advisor_desk.services import archive_service, auth_service, org_service, user_service


@click.group()
def cli():
    """Advisor desk CLI tools."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@click.option("--name", required=True, help="Organization name")
@click.option("--slug", required=True, help="URL-friendly slug (lowercase, no spaces)")
@click.option("--timezone", default=None, help="IANA timezone (defaults to DEFAULT_TIMEZONE)")
@click.option("--manager-username", required=True, help="Username of the first manager")
@click.option("--manager-name", required=True, help="Full name of the first manager")
@click.password_option("--manager-password", help="Password of the first manager")
def create_org(
    name: str,
    slug: str,
    timezone: str | None,
    manager_username: str,
    manager_name: str,
    manager_password: str,
):
    """
    Create organization and its first manager account.

    This is the bootstrap command for setting up a new tenant.

    Example:
        advisor-desk create-org --name "Acme Advisory" --slug acme --manager-username priya --manager-name "Priya Rao"
    """
    db = SessionLocal()
    try:
        org = org_service.create_org(db, name=name, slug=slug, timezone=timezone)
        user = user_service.create_user(
            db,
            actor=None,
            org_id=org.id,
            username=manager_username,
            full_name=manager_name,
            password=manager_password,
            role=Role.MANAGER,
        )
        click.echo(f"✓ Created organization: {org.name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"  Slug: {org.slug}")
        click.echo(f"  Timezone: {org.timezone}")
        click.echo(f"✓ Created manager: {user.username}")
    except (ValueError, ConflictError) as e:
        db.rollback()
        click.echo(f"❌ {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", required=True, help="Organization slug")
@click.option("--username", required=True)
@click.option("--full-name", required=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.ASSOCIATE_VIEWER.value,
    show_default=True,
)
@click.password_option("--password")
def create_user(org_slug: str, username: str, full_name: str, role: str, password: str):
    """Create a staff account in an existing organization."""
    db = SessionLocal()
    try:
        org = org_service.get_org_by_slug(db, org_slug)
        if not org:
            click.echo(f"❌ Organization '{org_slug}' not found")
            return
        user = user_service.create_user(
            db,
            actor=None,
            org_id=org.id,
            username=username,
            full_name=full_name,
            password=password,
            role=Role(role),
        )
        click.echo(f"✓ Created {user.role} {user.username} in {org.name}")
    except (ValueError, ConflictError) as e:
        db.rollback()
        click.echo(f"❌ {e}")
    finally:
        db.close()


@cli.command()
@click.option("--org-slug", default=None, help="Limit to one organization")
def archive_past_meetings(org_slug: str | None):
    """Move every past meeting into history."""
    db = SessionLocal()
    try:
        if org_slug:
            org = org_service.get_org_by_slug(db, org_slug)
            if not org:
                click.echo(f"❌ Organization '{org_slug}' not found")
                return
            archived = archive_service.archive_past_meetings(db, org.id)
        else:
            archived = archive_service.archive_all_organizations(db)
        click.echo(f"✓ Archived {archived} meetings")
    finally:
        db.close()


@cli.command()
@click.option("--username", required=True)
def revoke_sessions(username: str):
    """Log a user out everywhere."""
    db = SessionLocal()
    try:
        user = user_service.get_user_by_username(db, username)
        if not user:
            click.echo(f"❌ User '{username}' not found")
            return
        auth_service.revoke_sessions(db, user)
        click.echo(f"✓ Revoked sessions for {user.username}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
