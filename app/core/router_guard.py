from __future__ import annotations

from typing import Iterable

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.time_provider import TimeProvider, get_time_provider
from app.db import get_db
from app.models import Role
from app.request_context import client_ip_of
from app.services.auth_service import Principal, authenticate, authorize


def resolve_token(request: Request) -> str | None:
    authorization = request.headers.get('authorization', '')
    if authorization.lower().startswith('bearer '):
        return authorization[7:].strip() or None
    return None


def require_auth_user(
    request: Request,
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
) -> Principal:
    try:
        return authenticate(db, resolve_token(request), client_ip=client_ip_of(request), time_provider=time_provider)
    except UnauthenticatedError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.public_message) from exc


def require_role(request: Request, user: Principal, allowed_roles: set[Role] | Iterable[Role]) -> None:
    try:
        authorize(user, allowed_roles, client_ip=client_ip_of(request))
    except ForbiddenError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.public_message) from exc


def require_admin(request: Request, user: Principal = Depends(require_auth_user)) -> Principal:
    require_role(request, user, {Role.ADMIN})
    return user


def require_student(request: Request, user: Principal = Depends(require_auth_user)) -> Principal:
    require_role(request, user, {Role.STUDENT})
    return user
