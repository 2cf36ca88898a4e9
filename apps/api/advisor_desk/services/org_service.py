"""Organization service - tenant lookup and bootstrap."""

from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.core.errors import ConflictError
from advisor_desk.db.models import Organization


def get_org_by_id(db: Session, org_id: UUID) -> Organization | None:
    """Get organization by ID."""
    return db.get(Organization, org_id)


def get_org_by_slug(db: Session, slug: str) -> Organization | None:
    """Get organization by slug."""
    return db.query(Organization).filter(Organization.slug == slug.strip().lower()).first()


def create_org(db: Session, name: str, slug: str, timezone: str | None = None) -> Organization:
    """
    Create a new organization (flushed, caller commits).

    Raises:
        ValueError: Invalid slug
        ConflictError: If slug already exists
    """
    slug = slug.strip().lower()
    if not slug or not slug.replace("-", "").replace("_", "").isalnum():
        raise ValueError("Slug must be alphanumeric (with optional hyphens/underscores)")
    if get_org_by_slug(db, slug):
        raise ConflictError(f"Organization with slug '{slug}' already exists")

    tz_name = timezone or settings.DEFAULT_TIMEZONE
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone '{tz_name}'")
    org = Organization(name=name.strip(), slug=slug, timezone=tz_name)
    db.add(org)
    db.flush()
    return org
