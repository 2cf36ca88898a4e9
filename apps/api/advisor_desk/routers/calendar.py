"""Calendar router - one month of meetings and payment due dates."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_permission
from advisor_desk.core.permissions import PermissionKey, has_permission
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.calendar import CalendarMonth
from advisor_desk.services import calendar_service

router = APIRouter()


@router.get("/calendar/{year}/{month}", response_model=CalendarMonth)
def get_month(
    year: int = Path(..., ge=1900, le=9998),
    month: int = Path(..., ge=1, le=12),
    session: UserSession = Depends(require_permission(PermissionKey.MEETINGS_VIEW)),
    db: Session = Depends(get_db),
):
    """Meetings dated in the month plus projected payment occurrences."""
    view = calendar_service.build_month(db, session.org_id, month, year)
    payments = view.payments if has_permission(session.role, PermissionKey.PAYMENTS_VIEW) else []
    return CalendarMonth.model_validate(
        {"year": view.year, "month": view.month, "meetings": view.meetings, "payments": payments},
        from_attributes=True,
    )
