from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError, NotFoundError
from app.models import Brigade, Role, User


logger = logging.getLogger(__name__)


def find_user_by_id(db: Session, user_id: int) -> User | None:
    if not user_id or int(user_id) <= 0:
        return None
    return db.query(User).filter(User.id == int(user_id)).first()


def find_user_by_credential(db: Session, identifier: str, *, as_student: bool) -> User | None:
    clean = (identifier or '').strip()
    if not clean:
        return None
    if as_student:
        return db.query(User).filter(User.roll_number == clean).first()
    return db.query(User).filter(User.email == clean.lower()).first()


def create_user(
    db: Session,
    *,
    name: str,
    role: Role,
    password_hash: str,
    email: str | None = None,
    roll_number: str | None = None,
    brigade_id: int | None = None,
    is_active: bool = True,
) -> User:
    """Provision a user row. Used by bootstrap and fixtures; there is no public signup."""
    if role == Role.STUDENT:
        if not (roll_number or '').strip():
            raise InvalidInputError('Students need a roll number')
        if not brigade_id:
            raise InvalidInputError('Students must belong to a brigade')
    elif not (email or '').strip():
        raise InvalidInputError('Admins need an email')

    brigade = None
    if brigade_id:
        brigade = db.query(Brigade).filter(Brigade.id == int(brigade_id)).first()
        if not brigade:
            raise NotFoundError('Brigade not found')

    user = User(
        name=name.strip(),
        role=role.value,
        email=(email or '').strip().lower() or None,
        roll_number=(roll_number or '').strip() or None,
        brigade_id=brigade.id if brigade else None,
        brigade_name=brigade.name if brigade else '',
        password_hash=password_hash,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def set_user_active(db: Session, user_id: int, active: bool, *, actor_id: int) -> User:
    user = find_user_by_id(db, user_id)
    if not user:
        raise NotFoundError('User not found')
    user.is_active = bool(active)
    db.commit()
    db.refresh(user)
    logger.info('user_active_changed user_id=%s active=%s actor_id=%s', user.id, user.is_active, actor_id)
    return user
