from fastapi import Depends, HTTPException, status
from loguru import logger
from sqlmodel import Session, select
from civicdesk.db.session import get_session
from civicdesk.models.enums import UserRole
from civicdesk.models.user import User
from civicdesk.models.user_role import UserRoleGrant
from civicdesk.services.auth_service import get_current_user


def list_roles(session: Session, user_id: str) -> list[UserRole]:
    grants = session.exec(select(UserRoleGrant).where(UserRoleGrant.user_id == user_id)).all()
    return [grant.role for grant in grants]


def has_role(session: Session, user_id: str, role: UserRole) -> bool:
    statement = select(UserRoleGrant).where(
        (UserRoleGrant.user_id == user_id) & (UserRoleGrant.role == role)
    )
    return session.exec(statement).first() is not None


def grant_role(session: Session, user: User, role: UserRole) -> UserRoleGrant:
    existing = session.exec(
        select(UserRoleGrant).where((UserRoleGrant.user_id == user.id) & (UserRoleGrant.role == role))
    ).first()
    if existing:
        return existing
    record = UserRoleGrant(user_id=user.id, role=role)
    session.add(record)
    # Keep the display field in step with the strongest grant.
    if role != UserRole.CITIZEN:
        user.role = role
        session.add(user)
    session.commit()
    session.refresh(record)
    return record


def revoke_role(session: Session, user_id: str, role: UserRole) -> None:
    record = session.exec(
        select(UserRoleGrant).where((UserRoleGrant.user_id == user_id) & (UserRoleGrant.role == role))
    ).first()
    if record:
        session.delete(record)
        session.commit()


def require_employee(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> User:
    if not has_role(session, user.id, UserRole.EMPLOYEE):
        logger.warning('auth.employee_required', user_id=user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Forbidden: Employee access required')
    return user
