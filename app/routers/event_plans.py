from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.day_phase import activity_detail_visible
from app.core.errors import PortalError
from app.core.router_guard import require_admin, require_auth_user
from app.core.time_provider import TimeProvider, get_time_provider
from app.db import get_db
from app.models import Role
from app.route_logging import EndpointNameRoute
from app.schemas import EventPlanCreateRequest, EventPlanResponse, EventPlanUpdateRequest
from app.services.activity_service import (
    create_activity,
    get_activity,
    list_activities,
    serialize_activity,
    update_activity,
)
from app.services.auth_service import Principal


router = APIRouter(prefix='/api/event-plans', tags=['Event Plans'], route_class=EndpointNameRoute)


def _serialize_for(user: Principal, row, time_provider: TimeProvider) -> dict:
    if user.role == Role.ADMIN:
        return serialize_activity(row)
    return serialize_activity(row, detailed=activity_detail_visible(time_provider.now(), row))


@router.get('', response_model=list[EventPlanResponse])
def list_all(
    on_date: date | None = Query(default=None, alias='date'),
    event_id: int | None = None,
    plan_type: Literal['withSubmission', 'withoutSubmission'] | None = None,
    user: Principal = Depends(require_auth_user),
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    requires_submission = None if plan_type is None else plan_type == 'withSubmission'
    rows = list_activities(db, on_date=on_date, event_id=event_id, requires_submission=requires_submission)
    return [_serialize_for(user, row, time_provider) for row in rows]


@router.get('/{event_plan_id}', response_model=EventPlanResponse)
def get_one(
    event_plan_id: int,
    user: Principal = Depends(require_auth_user),
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    try:
        return _serialize_for(user, get_activity(db, event_plan_id), time_provider)
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post('', status_code=201, response_model=EventPlanResponse)
def create(
    payload: EventPlanCreateRequest,
    user: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    try:
        row = create_activity(
            db,
            title=payload.title,
            description=payload.description,
            plan_date=payload.plan_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            event_id=payload.event_id,
            requires_submission=payload.plan_type == 'withSubmission',
            submission_kind=payload.submission_type,
            max_size_mib=payload.file_size_limit,
            created_by=user.id,
            time_provider=time_provider,
        )
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return serialize_activity(row)


@router.put('/{event_plan_id}', response_model=EventPlanResponse)
def update(
    event_plan_id: int,
    payload: EventPlanUpdateRequest,
    user: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        row = update_activity(db, event_plan_id, payload.model_dump(exclude_unset=True), actor_id=user.id)
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return serialize_activity(row)
