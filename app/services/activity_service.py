from __future__ import annotations

import logging
from datetime import date, time

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import InvalidInputError, NotFoundError
from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Event, EventPlan, SubmissionKind


logger = logging.getLogger(__name__)

_SCHEDULE_FIELDS = ('plan_date', 'start_time', 'end_time')


def get_activity(db: Session, activity_id: int) -> EventPlan:
    row = db.query(EventPlan).filter(EventPlan.id == int(activity_id)).first()
    if not row:
        raise NotFoundError('Event plan not found')
    return row


def list_activities(
    db: Session,
    *,
    on_date: date | None = None,
    event_id: int | None = None,
    requires_submission: bool | None = None,
    active_only: bool = False,
) -> list[EventPlan]:
    query = db.query(EventPlan)
    if on_date is not None:
        query = query.filter(EventPlan.plan_date == on_date)
    if event_id is not None:
        query = query.filter(EventPlan.event_id == int(event_id))
    if requires_submission is not None:
        query = query.filter(EventPlan.requires_submission.is_(bool(requires_submission)))
    if active_only:
        query = query.filter(EventPlan.is_active.is_(True))
    return query.order_by(EventPlan.plan_date.asc(), EventPlan.start_time.asc(), EventPlan.id.asc()).all()


def normalize_submission_contract(
    requires_submission: bool,
    submission_kind: SubmissionKind | str | None,
    max_size_mib: int | None,
) -> tuple[bool, str | None, int | None]:
    """Return the stored (requires, kind, max MiB) triple.

    Kind and size only survive when the plan takes submissions, and the size
    only for file submissions.
    """
    if not requires_submission:
        return False, None, None
    if not submission_kind:
        raise InvalidInputError('Submission type is required for submission plans')
    try:
        kind = SubmissionKind(submission_kind)
    except ValueError as exc:
        raise InvalidInputError('Invalid submission type') from exc
    if kind != SubmissionKind.FILE:
        return True, kind.value, None
    if max_size_mib is None:
        raise InvalidInputError('File size limit is required for file submissions')
    limit = int(max_size_mib)
    if limit < 1 or limit > settings.max_file_size_mib:
        raise InvalidInputError(f'File size limit must be between 1 and {settings.max_file_size_mib} MiB')
    return True, kind.value, limit


def _validate_schedule(start_time: time, end_time: time | None) -> None:
    if end_time is not None and end_time < start_time:
        raise InvalidInputError('End time must not be earlier than start time')


def _ensure_event(db: Session, event_id: int | None) -> None:
    if event_id is None:
        return
    if not db.query(Event).filter(Event.id == int(event_id)).first():
        raise NotFoundError('Event not found')


def create_activity(
    db: Session,
    *,
    title: str,
    plan_date: date,
    start_time: time,
    end_time: time | None = None,
    description: str = '',
    event_id: int | None = None,
    requires_submission: bool = False,
    submission_kind: SubmissionKind | str | None = None,
    max_size_mib: int | None = None,
    created_by: int | None = None,
    time_provider: TimeProvider = default_time_provider,
) -> EventPlan:
    clean_title = (title or '').strip()
    if not clean_title:
        raise InvalidInputError('Title is required')
    _validate_schedule(start_time, end_time)
    _ensure_event(db, event_id)
    requires, kind, limit = normalize_submission_contract(requires_submission, submission_kind, max_size_mib)

    row = EventPlan(
        title=clean_title,
        description=description or '',
        event_id=event_id,
        plan_date=plan_date,
        start_time=start_time,
        end_time=end_time,
        requires_submission=requires,
        submission_kind=kind,
        max_size_mib=limit,
        created_by=created_by,
        created_at=time_provider.utc_naive_now(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(
        'event_plan_created event_plan_id=%s requires_submission=%s kind=%s created_by=%s',
        row.id,
        row.requires_submission,
        row.submission_kind,
        created_by,
    )
    return row


def update_activity(db: Session, activity_id: int, changes: dict, *, actor_id: int | None = None) -> EventPlan:
    row = get_activity(db, activity_id)
    if any(field in changes for field in ('requires_submission', 'submission_kind', 'max_size_mib')):
        raise InvalidInputError('Submission settings cannot be changed after creation')

    if 'title' in changes:
        clean_title = (changes['title'] or '').strip()
        if not clean_title:
            raise InvalidInputError('Title cannot be empty')
        row.title = clean_title
    if 'description' in changes:
        row.description = changes['description'] or ''
    if 'event_id' in changes:
        _ensure_event(db, changes['event_id'])
        row.event_id = changes['event_id']
    if changes.get('is_active') is not None:
        row.is_active = bool(changes['is_active'])

    schedule_changed = any(field in changes for field in _SCHEDULE_FIELDS)
    if schedule_changed:
        start_time = changes.get('start_time') or row.start_time
        end_time = changes.get('end_time', row.end_time)
        _validate_schedule(start_time, end_time)
        row.plan_date = changes.get('plan_date') or row.plan_date
        row.start_time = start_time
        row.end_time = end_time

    db.commit()
    db.refresh(row)
    if schedule_changed and row.submissions:
        # Existing submissions keep their rows; their derived activity status may now differ.
        logger.warning(
            'event_plan_schedule_changed_with_submissions event_plan_id=%s submissions=%s actor_id=%s',
            row.id,
            len(row.submissions),
            actor_id,
        )
    logger.info('event_plan_updated event_plan_id=%s fields=%s actor_id=%s', row.id, sorted(changes), actor_id)
    return row


def serialize_activity(row: EventPlan, *, detailed: bool = True) -> dict:
    payload = {
        'id': row.id,
        'title': row.title,
        'description': row.description or '',
        'event_id': row.event_id,
        'plan_date': row.plan_date,
        'start_time': row.start_time,
        'end_time': row.end_time,
        'plan_type': 'withSubmission' if row.requires_submission else 'withoutSubmission',
        'submission_type': row.submission_kind,
        'file_size_limit': row.max_size_mib,
        'is_active': bool(row.is_active),
        'detail_hidden': False,
    }
    if not detailed:
        # Schedule and plan type stay visible; content and contract do not.
        payload.update(description=None, submission_type=None, file_size_limit=None, detail_hidden=True)
    return payload
