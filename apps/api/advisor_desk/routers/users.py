"""Users router - staff account administration (manager only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.errors import ConflictError
from advisor_desk.core.policies import POLICIES
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.user import UserCreate, UserRead, UserUpdate
from advisor_desk.services import user_service

router = APIRouter()

manage_users = require_permission(POLICIES["users"].default)


@router.get("", response_model=list[UserRead])
def list_users(
    session: UserSession = Depends(manage_users),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, session.org_id)


@router.post("", response_model=UserRead, status_code=201, dependencies=[Depends(require_csrf_header)])
def create_user(
    data: UserCreate,
    session: UserSession = Depends(manage_users),
    db: Session = Depends(get_db),
):
    try:
        return user_service.create_user(
            db,
            session,
            org_id=session.org_id,
            username=data.username,
            full_name=data.full_name,
            password=data.password,
            role=data.role,
        )
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{user_id}", response_model=UserRead, dependencies=[Depends(require_csrf_header)])
def update_user(
    user_id: UUID,
    data: UserUpdate,
    session: UserSession = Depends(manage_users),
    db: Session = Depends(get_db),
):
    """Change role, toggle active status, rename or reset password."""
    user = user_service.get_user(db, session.org_id, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return user_service.update_user(
            db,
            session,
            user,
            role=data.role,
            is_active=data.is_active,
            full_name=data.full_name,
            password=data.password,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_user(
    user_id: UUID,
    session: UserSession = Depends(manage_users),
    db: Session = Depends(get_db),
):
    user = user_service.get_user(db, session.org_id, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        user_service.delete_user(db, session, user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
