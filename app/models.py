from datetime import date, datetime, time
from enum import Enum
from sqlalchemy import BigInteger, Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class Role(str, Enum):
    ADMIN = 'admin'
    STUDENT = 'student'


class SubmissionKind(str, Enum):
    FILE = 'file'
    TEXT = 'text'
    LINK = 'link'


class SubmissionStatus(str, Enum):
    SUBMITTED = 'submitted'
    PENDING = 'pending'
    LATE = 'late'


class Brigade(Base):
    __tablename__ = 'brigades'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    users: Mapped[list['User']] = relationship('User', back_populates='brigade')


class User(Base):
    __tablename__ = 'users'
    __table_args__ = (
        Index('ix_users_role_active', 'role', 'is_active'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    roll_number: Mapped[str | None] = mapped_column(String(40), unique=True, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(160))
    role: Mapped[str] = mapped_column(String(20), default=Role.STUDENT.value, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), default='')
    brigade_id: Mapped[int | None] = mapped_column(ForeignKey('brigades.id'), nullable=True, index=True)
    brigade_name: Mapped[str] = mapped_column(String(120), default='')
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    brigade: Mapped['Brigade | None'] = relationship('Brigade', back_populates='users')
    submissions: Mapped[list['Submission']] = relationship('Submission', back_populates='student')


class Event(Base):
    __tablename__ = 'events'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(160))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    event_plans: Mapped[list['EventPlan']] = relationship('EventPlan', back_populates='event')


class EventPlan(Base):
    __tablename__ = 'event_plans'
    __table_args__ = (
        Index('ix_event_plans_date_start_time', 'plan_date', 'start_time'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(160))
    description: Mapped[str] = mapped_column(Text, default='')
    event_id: Mapped[int | None] = mapped_column(ForeignKey('events.id'), nullable=True, index=True)
    plan_date: Mapped[date] = mapped_column(Date, index=True)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    requires_submission: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    submission_kind: Mapped[str | None] = mapped_column(String(10), nullable=True)
    max_size_mib: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    event: Mapped['Event | None'] = relationship('Event', back_populates='event_plans')
    submissions: Mapped[list['Submission']] = relationship('Submission', back_populates='event_plan')


class Submission(Base):
    __tablename__ = 'submissions'
    __table_args__ = (
        UniqueConstraint('student_id', 'event_plan_id', name='uq_submissions_student_event_plan'),
        Index('ix_submissions_event_plan_status', 'event_plan_id', 'status'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey('users.id'), index=True)
    event_plan_id: Mapped[int] = mapped_column(ForeignKey('event_plans.id'), index=True)
    submission_kind: Mapped[str] = mapped_column(String(10))
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=SubmissionStatus.SUBMITTED.value, index=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, index=True)

    student: Mapped['User'] = relationship('User', back_populates='submissions')
    event_plan: Mapped['EventPlan'] = relationship('EventPlan', back_populates='submissions')
