from typing import Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import InvalidInputError, PortalError
from app.core.router_guard import require_auth_user, require_student
from app.core.submission_payload import build_payload, mib_to_bytes
from app.core.time_provider import TimeProvider, get_time_provider
from app.db import get_db
from app.models import SubmissionKind
from app.route_logging import EndpointNameRoute
from app.schemas import SubmissionResponse, SubmissionStatusUpdateRequest
from app.services.auth_service import Principal
from app.services.blob_store import BlobStorageError, UnsupportedMediaTypeError, store_upload
from app.services.submission_service import list_submissions, serialize_submission, set_submission_status, submit


router = APIRouter(prefix='/api/submissions', tags=['Submissions'], route_class=EndpointNameRoute)


@router.get('', response_model=list[SubmissionResponse])
def list_all(
    student_id: int | None = None,
    event_plan_id: int | None = None,
    status: Literal['submitted', 'pending', 'late'] | None = None,
    user: Principal = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    rows = list_submissions(db, user, student_id=student_id, event_plan_id=event_plan_id, status=status)
    return [serialize_submission(row) for row in rows]


async def _read_upload(file: UploadFile) -> bytes:
    cap = mib_to_bytes(settings.max_file_size_mib)
    data = await file.read(cap + 1)
    if not data:
        raise InvalidInputError('File is required for file submission')
    if len(data) > cap:
        raise InvalidInputError(f'File exceeds the {settings.max_file_size_mib} MiB limit')
    return data


@router.post('', status_code=201, response_model=SubmissionResponse)
async def create(
    event_plan_id: int = Form(...),
    submission_type: Literal['file', 'text', 'link'] = Form(...),
    content: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    user: Principal = Depends(require_student),
    db: Session = Depends(get_db),
    time_provider: TimeProvider = Depends(get_time_provider),
):
    kind = SubmissionKind(submission_type)
    try:
        file_payload = None
        if kind == SubmissionKind.FILE and file is not None:
            data = await _read_upload(file)
            file_payload = store_upload(data, filename=file.filename or '', content_type=file.content_type)
        payload = build_payload(kind, content=content, file=file_payload)
        row = submit(db, user, event_plan_id, kind, payload, time_provider=time_provider)
    except UnsupportedMediaTypeError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except BlobStorageError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return serialize_submission(row)


@router.put('/{submission_id}/status', response_model=SubmissionResponse)
def update_status(
    submission_id: int,
    payload: SubmissionStatusUpdateRequest,
    user: Principal = Depends(require_auth_user),
    db: Session = Depends(get_db),
):
    try:
        row = set_submission_status(db, user, submission_id, payload.status)
    except PortalError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return serialize_submission(row)
