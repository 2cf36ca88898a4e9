"""Activity router - the organization's audit trail."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_permission
from advisor_desk.core.policies import POLICIES
from advisor_desk.db.enums import ActivityAction
from advisor_desk.schemas.activity import ActivityPage, ActivityRead
from advisor_desk.schemas.auth import UserSession
from advisor_desk.services import activity_service
from advisor_desk.utils.dates import resolve_timezone, to_zone
from advisor_desk.utils.pagination import PaginationParams, get_pagination, page_count

router = APIRouter()

view_activity = require_permission(POLICIES["activity"].default)


@router.get("/activity", response_model=ActivityPage)
def list_activity(
    action: ActivityAction | None = Query(None),
    username: str | None = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(view_activity),
    db: Session = Depends(get_db),
):
    """Paginated activity, newest first, filterable by action and user."""
    entries, total = activity_service.list_activity(
        db,
        session.org_id,
        action=action,
        username=username,
        limit=pagination.per_page,
        offset=pagination.offset,
    )
    return ActivityPage(
        items=[ActivityRead.model_validate(e) for e in entries],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=page_count(total, pagination.per_page),
        usernames=activity_service.list_usernames(db, session.org_id),
    )


@router.get("/activity/export")
def export_activity(
    action: ActivityAction | None = Query(None),
    username: str | None = Query(None, max_length=100),
    session: UserSession = Depends(view_activity),
    db: Session = Depends(get_db),
):
    """Download the filtered log as CSV."""
    content = activity_service.export_activity_csv(
        db,
        session.org_id,
        timezone_name=session.org_timezone,
        action=action,
        username=username,
    )
    stamp = to_zone(None, resolve_timezone(session.org_timezone)).strftime("%Y-%m-%d")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="activity-{stamp}.csv"'},
    )
