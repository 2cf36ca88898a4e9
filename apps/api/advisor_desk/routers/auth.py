"""Auth router - username/password login and session cookie."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from advisor_desk.core.permissions import get_role_permissions
from advisor_desk.core.rate_limit import limiter
from advisor_desk.schemas.auth import LoginRequest, MeResponse, UserSession
from advisor_desk.services import auth_service, org_service

router = APIRouter()


def _me(db: Session, session: UserSession) -> MeResponse:
    org = org_service.get_org_by_id(db, session.org_id)
    return MeResponse(
        user_id=session.user_id,
        username=session.username,
        full_name=session.full_name,
        org_id=session.org_id,
        org_name=org.name if org else "",
        org_timezone=session.org_timezone,
        role=session.role,
        permissions=sorted(p.value for p in get_role_permissions(session.role)),
    )


@router.post("/login", response_model=MeResponse, dependencies=[Depends(require_csrf_header)])
@limiter.limit(f"{settings.RATE_LIMIT_AUTH}/minute")
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Log in with username and password.

    Sets an HttpOnly session cookie that expires after SESSION_EXPIRES_HOURS.
    """
    user = auth_service.authenticate(db, body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = auth_service.record_login(db, user)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    session = UserSession(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        username=user.username,
        full_name=user.full_name,
        org_timezone=user.organization.timezone,
    )
    return _me(db, session)


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}


@router.get("/me", response_model=MeResponse)
def me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Current user, organization and effective permissions."""
    return _me(db, session)
