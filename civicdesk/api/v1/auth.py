from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger
from sqlmodel import Session
from civicdesk.db.session import get_session
from civicdesk.models.user import User
from civicdesk.schemas.auth import LoginRequest, RegisterRequest, RefreshRequest, TokenResponse, LogoutRequest
from civicdesk.schemas.user import UserOut
from civicdesk.services.auth_service import (
    authenticate_user,
    create_access_token,
    create_refresh_token,
    create_user,
    get_current_user,
    get_user_by_email,
    revoke_refresh_token,
    store_refresh_token,
    validate_refresh_token,
)
from civicdesk.services.login_limiter import attempt_key, client_ip, login_limiter
from civicdesk.services.role_service import grant_role, list_roles
from civicdesk.models.enums import UserRole

router = APIRouter(prefix='/auth', tags=['auth'])

INVALID_CREDENTIALS = 'Invalid credentials'


def _to_user_out(session: Session, user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        role=user.role,
        roles=list_roles(session, user.id),
    )


@router.post('/register', response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, session: Session = Depends(get_session)) -> UserOut:
    if get_user_by_email(session, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Email already registered')
    user = create_user(session, payload.email, payload.password, payload.full_name)
    grant_role(session, user, UserRole.CITIZEN)
    logger.info('auth.registered', user_id=user.id)
    return _to_user_out(session, user)


@router.post('/login', response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, session: Session = Depends(get_session)) -> TokenResponse:
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Email and password are required')

    key = attempt_key(payload.email, client_ip(request))
    # Locked keys get the same answer as bad credentials.
    if login_limiter.is_locked(key):
        logger.warning('auth.login.blocked')
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    user = authenticate_user(session, payload.email, payload.password)
    if not user:
        remaining = login_limiter.record_failure(key)
        logger.info('auth.login.failed', remaining_attempts=remaining)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    login_limiter.record_success(key)
    access_token = create_access_token(user.id)
    refresh_token, expires_at = create_refresh_token(user.id)
    store_refresh_token(session, refresh_token, user.id, expires_at)
    logger.info('auth.login.succeeded', user_id=user.id)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.post('/refresh', response_model=TokenResponse)
def refresh(payload: RefreshRequest, session: Session = Depends(get_session)) -> TokenResponse:
    user_id = validate_refresh_token(session, payload.refresh_token)
    revoke_refresh_token(session, payload.refresh_token)
    access_token = create_access_token(user_id)
    refresh_token, expires_at = create_refresh_token(user_id)
    store_refresh_token(session, refresh_token, user_id, expires_at)
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


@router.post('/logout')
def logout(payload: LogoutRequest, session: Session = Depends(get_session)) -> dict:
    revoke_refresh_token(session, payload.refresh_token)
    return {'status': 'ok'}


@router.get('/me', response_model=UserOut)
def me(session: Session = Depends(get_session), user: User = Depends(get_current_user)) -> UserOut:
    return _to_user_out(session, user)
