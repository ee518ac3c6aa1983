from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import ConflictError, InvalidInputError, InvalidOperationError, NotFoundError, PortalError
from app.core.submission_payload import FilePayload, LinkPayload, SubmissionPayload, TextPayload, mib_to_bytes
from app.core.time_provider import TimeProvider, default_time_provider
from app.models import EventPlan, Role, Submission, SubmissionKind, SubmissionStatus
from app.request_context import current_client_ip
from app.services.activity_service import get_activity
from app.services.auth_service import Principal, authorize


logger = logging.getLogger(__name__)


def _log_rejection(action: str, exc: PortalError, *, principal_id: int | None, resource: str) -> None:
    logger.warning(
        'submission_rejected action=%s kind=%s principal_id=%s resource=%s ip=%s detail=%s',
        action,
        exc.kind,
        principal_id if principal_id is not None else '-',
        resource,
        current_client_ip.get(),
        exc,
    )


def has_submission(db: Session, student_id: int, activity_id: int) -> bool:
    return (
        db.query(Submission.id)
        .filter(Submission.student_id == int(student_id), Submission.event_plan_id == int(activity_id))
        .first()
        is not None
    )


def submitted_activity_ids(db: Session, student_id: int, activity_ids: list[int]) -> set[int]:
    if not activity_ids:
        return set()
    rows = (
        db.query(Submission.event_plan_id)
        .filter(Submission.student_id == int(student_id), Submission.event_plan_id.in_(activity_ids))
        .all()
    )
    return {int(event_plan_id) for (event_plan_id,) in rows}


def _check_payload(activity: EventPlan, kind: SubmissionKind, payload: SubmissionPayload | None) -> None:
    if kind == SubmissionKind.FILE:
        if not isinstance(payload, FilePayload):
            raise InvalidInputError('File is required for file submission')
        limit_bytes = mib_to_bytes(activity.max_size_mib or 0)
        if payload.size < 0 or payload.size > limit_bytes:
            raise InvalidInputError(f'File exceeds the {activity.max_size_mib} MiB limit')
        if not (payload.url or '').strip():
            raise InvalidInputError('File is required for file submission')
        return

    expected = TextPayload if kind == SubmissionKind.TEXT else LinkPayload
    if not isinstance(payload, expected) or not (payload.content or '').strip():
        raise InvalidInputError('Content is required for this submission type')


def _validated_submission(
    db: Session,
    student_id: int,
    activity_id: int,
    kind: SubmissionKind | str,
    payload: SubmissionPayload | None,
) -> tuple[EventPlan, SubmissionKind]:
    activity = get_activity(db, activity_id)
    if not activity.requires_submission:
        raise InvalidOperationError('Activity does not accept submissions')
    if has_submission(db, student_id, activity.id):
        raise ConflictError('Already submitted')
    try:
        requested_kind = SubmissionKind(kind)
    except ValueError as exc:
        raise InvalidInputError('Wrong submission type') from exc
    if requested_kind.value != activity.submission_kind:
        raise InvalidInputError(f'Wrong submission type: this activity requires {activity.submission_kind}')
    _check_payload(activity, requested_kind, payload)
    return activity, requested_kind


def submit(
    db: Session,
    principal: Principal,
    activity_id: int,
    kind: SubmissionKind | str,
    payload: SubmissionPayload | None,
    *,
    time_provider: TimeProvider = default_time_provider,
) -> Submission:
    """Create the caller's one submission for an activity.

    Only students may submit. Checks then run in a fixed order and the first
    failure wins: missing activity, activity without submissions, existing
    submission, kind mismatch, payload shape. The unique index on (student,
    activity) backs the existing submission check, so of several concurrent
    calls exactly one commits.
    Lateness is never decided here.
    """
    resource = f'event_plan:{activity_id}'
    try:
        authorize(principal, {Role.STUDENT}, client_ip=current_client_ip.get())
        activity, requested_kind = _validated_submission(db, principal.id, activity_id, kind, payload)
    except PortalError as exc:
        _log_rejection('submit', exc, principal_id=principal.id, resource=resource)
        raise

    row = Submission(
        student_id=principal.id,
        event_plan_id=activity.id,
        submission_kind=requested_kind.value,
        status=SubmissionStatus.SUBMITTED.value,
        submitted_at=time_provider.utc_naive_now(),
    )
    if isinstance(payload, FilePayload):
        row.file_url = payload.url
        row.file_name = payload.name
        row.file_size = int(payload.size)
    else:
        row.content = payload.content.strip()

    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        conflict = ConflictError('Already submitted')
        _log_rejection('submit', conflict, principal_id=principal.id, resource=resource)
        raise conflict from exc
    db.refresh(row)

    logger.info(
        'submission_created submission_id=%s student_id=%s event_plan_id=%s kind=%s',
        row.id,
        row.student_id,
        row.event_plan_id,
        row.submission_kind,
    )
    return row


def get_submission(db: Session, submission_id: int) -> Submission:
    row = (
        db.query(Submission)
        .options(joinedload(Submission.student), joinedload(Submission.event_plan))
        .filter(Submission.id == int(submission_id))
        .first()
    )
    if not row:
        raise NotFoundError('Submission not found')
    return row


def set_submission_status(
    db: Session,
    principal: Principal,
    submission_id: int,
    status: SubmissionStatus | str,
) -> Submission:
    # Any status may follow any other; the log line is the only audit trail.
    resource = f'submission:{submission_id}'
    try:
        authorize(principal, {Role.ADMIN}, client_ip=current_client_ip.get())
        try:
            new_status = SubmissionStatus(status)
        except ValueError as exc:
            raise InvalidInputError('Invalid status') from exc
        row = get_submission(db, submission_id)
    except PortalError as exc:
        _log_rejection('set_status', exc, principal_id=principal.id, resource=resource)
        raise

    previous = row.status
    row.status = new_status.value
    db.commit()
    db.refresh(row)
    logger.info(
        'submission_status_updated submission_id=%s old_status=%s new_status=%s updated_by=%s',
        row.id,
        previous,
        row.status,
        principal.id,
    )
    return row


def list_submissions(
    db: Session,
    principal: Principal,
    *,
    student_id: int | None = None,
    event_plan_id: int | None = None,
    status: SubmissionStatus | str | None = None,
) -> list[Submission]:
    query = db.query(Submission).options(joinedload(Submission.student), joinedload(Submission.event_plan))
    if principal.role == Role.STUDENT:
        query = query.filter(Submission.student_id == principal.id)
    elif student_id is not None:
        query = query.filter(Submission.student_id == int(student_id))
    if event_plan_id is not None:
        query = query.filter(Submission.event_plan_id == int(event_plan_id))
    if status is not None:
        query = query.filter(Submission.status == SubmissionStatus(status).value)
    return query.order_by(Submission.submitted_at.desc(), Submission.id.desc()).all()


def serialize_submission(row: Submission) -> dict:
    student = row.student
    event_plan = row.event_plan
    return {
        'id': row.id,
        'student_id': row.student_id,
        'student_name': student.name if student else '',
        'brigade_name': (student.brigade_name or '') if student else '',
        'event_plan_id': row.event_plan_id,
        'event_plan_title': event_plan.title if event_plan else '',
        'submission_type': row.submission_kind,
        'content': row.content,
        'file_url': row.file_url,
        'file_name': row.file_name,
        'file_size': row.file_size,
        'status': row.status,
        'submitted_at': row.submitted_at,
    }
