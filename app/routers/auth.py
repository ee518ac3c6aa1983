import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.router_guard import require_auth_user, resolve_token
from app.core.time_provider import TimeProvider, get_time_provider
from app.db import get_db
from app.request_context import client_ip_of
from app.route_logging import EndpointNameRoute
from app.schemas import LoginRequest
from app.services.auth_service import InvalidCredentialsError, Principal, login, revoke_token
from app.services.user_service import find_user_by_id


logger = logging.getLogger(__name__)
router = APIRouter(prefix='/auth', tags=['Auth'], route_class=EndpointNameRoute)


def _serialize_user(user) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'roll_number': user.roll_number,
        'name': user.name,
        'role': user.role,
        'brigade_id': user.brigade_id,
        'brigade_name': user.brigade_name,
        'is_active': bool(user.is_active),
    }


@router.post('/login')
def auth_login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    try:
        data = login(
            db,
            payload.identifier,
            payload.password,
            as_student=payload.is_student,
            client_ip=client_ip_of(request),
            time_provider=time_provider,
        )
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    user = find_user_by_id(db, data['user_id'])
    return {'token': data['token'], 'expires_at': data['expires_at'], 'user': _serialize_user(user)}


@router.get('/profile')
def auth_profile(user: Principal = Depends(require_auth_user), db: Session = Depends(get_db)):
    row = find_user_by_id(db, user.id)
    if not row:
        raise HTTPException(status_code=404, detail='User not found')
    payload = _serialize_user(row)
    payload['created_at'] = row.created_at.isoformat() if row.created_at else None
    return payload


@router.post('/logout')
def auth_logout(request: Request, user: Principal = Depends(require_auth_user)):
    revoke_token(resolve_token(request))
    logger.info('auth_logout user_id=%s ip=%s', user.id, client_ip_of(request))
    return {'ok': True}
