from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.day_phase import (
    activity_detail_visible,
    resolve_day_phase,
    resolve_phase,
    seconds_until_start,
    visible_activities,
)
from app.core.router_guard import require_auth_user
from app.core.time_provider import TimeProvider, get_time_provider
from app.db import get_db
from app.models import Role
from app.route_logging import EndpointNameRoute
from app.schemas import DayViewResponse
from app.services.activity_service import list_activities, serialize_activity
from app.services.auth_service import Principal
from app.services.submission_service import submitted_activity_ids


router = APIRouter(prefix='/api/day', tags=['Day'], route_class=EndpointNameRoute)


@router.get('', response_model=DayViewResponse)
def day_view(
    on_date: date | None = Query(default=None, alias='date'),
    review: bool = False,
    user: Principal = Depends(require_auth_user),
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    now = time_provider.now()
    target_date = on_date or now.date()
    day_phase = resolve_day_phase(now, review_requested=review)

    rows = visible_activities(now, list_activities(db, on_date=target_date, active_only=True), day_phase)
    is_student = user.role == Role.STUDENT
    submitted = set()
    if is_student:
        submitted = submitted_activity_ids(db, user.id, [int(row.id) for row in rows])

    activities = []
    for row in rows:
        resolution = resolve_phase(now, row, has_submission=row.id in submitted, review_requested=review)
        detailed = not is_student or activity_detail_visible(now, row)
        activities.append(
            {
                'activity': serialize_activity(row, detailed=detailed),
                'status': resolution.activity_status.value,
                'submitted': row.id in submitted,
                'eligible': resolution.eligible and is_student and detailed,
                'starts_in_seconds': seconds_until_start(now, row),
            }
        )
    return {'plan_date': target_date, 'day_phase': day_phase.value, 'activities': activities}
