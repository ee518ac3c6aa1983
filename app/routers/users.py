from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.errors import PortalError
from app.core.router_guard import require_admin
from app.db import get_db
from app.route_logging import EndpointNameRoute
from app.schemas import UserActiveUpdateRequest
from app.services.auth_service import Principal
from app.services.user_service import set_user_active


router = APIRouter(prefix='/api/users', tags=['Users'], route_class=EndpointNameRoute)


@router.put('/{user_id}/active')
def update_active(
    user_id: int,
    payload: UserActiveUpdateRequest,
    user: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == user.id and not payload.is_active:
        raise HTTPException(status_code=400, detail='Cannot deactivate your own account')
    try:
        row = set_user_active(db, user_id, payload.is_active, actor_id=user.id)
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return {'id': row.id, 'is_active': bool(row.is_active)}
