from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1)
    password: str
    is_student: bool = False


class EventPlanCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=160)
    description: str = ''
    plan_date: date
    start_time: time
    end_time: time | None = None
    event_id: int | None = None
    plan_type: Literal['withSubmission', 'withoutSubmission']
    submission_type: Literal['file', 'text', 'link'] | None = None
    file_size_limit: int | None = Field(default=None, ge=1, le=100)

    @model_validator(mode='after')
    def _submission_type_for_submission_plans(self):
        if self.plan_type == 'withSubmission' and not self.submission_type:
            raise ValueError('Submission type is required for submission plans')
        return self


class EventPlanUpdateRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: str | None = Field(default=None, min_length=1, max_length=160)
    description: str | None = None
    plan_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    event_id: int | None = None
    is_active: bool | None = None


class SubmissionStatusUpdateRequest(BaseModel):
    status: Literal['submitted', 'pending', 'late']


class UserActiveUpdateRequest(BaseModel):
    is_active: bool


class EventPlanResponse(BaseModel):
    id: int
    title: str
    description: str | None
    event_id: int | None
    plan_date: date
    start_time: time
    end_time: time | None
    plan_type: Literal['withSubmission', 'withoutSubmission']
    submission_type: Literal['file', 'text', 'link'] | None
    file_size_limit: int | None
    is_active: bool
    detail_hidden: bool = False


class SubmissionResponse(BaseModel):
    id: int
    student_id: int
    student_name: str = ''
    brigade_name: str = ''
    event_plan_id: int
    event_plan_title: str = ''
    submission_type: Literal['file', 'text', 'link']
    content: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    status: Literal['submitted', 'pending', 'late']
    submitted_at: datetime


class DayActivityResponse(BaseModel):
    activity: EventPlanResponse
    status: Literal['upcoming', 'ongoing', 'completed']
    submitted: bool
    eligible: bool
    starts_in_seconds: int


class DayViewResponse(BaseModel):
    plan_date: date
    day_phase: Literal['preview', 'active', 'review']
    activities: list[DayActivityResponse]
