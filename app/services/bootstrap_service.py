import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.models import Role, User
from app.services.auth_service import hash_password
from app.services.user_service import create_user


logger = logging.getLogger(__name__)


def _seed_default_admin_if_needed(db: Session) -> dict:
    email = (settings.bootstrap_admin_email or '').strip().lower()
    password = settings.bootstrap_admin_password or ''
    if not email or not password:
        logger.warning('bootstrap_admin_skipped missing_bootstrap_admin_credentials')
        return {'seeded': False, 'reason': 'no_admin_credentials'}

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        logger.warning('bootstrap_admin_skipped email_taken role=%s', existing.role)
        return {'seeded': False, 'reason': 'email_taken'}

    try:
        password_hash = hash_password(password)
    except ValueError:
        logger.warning('bootstrap_admin_skipped weak_bootstrap_admin_password')
        return {'seeded': False, 'reason': 'weak_password'}

    admin = create_user(
        db,
        name=settings.bootstrap_admin_name or 'Administrator',
        role=Role.ADMIN,
        email=email,
        password_hash=password_hash,
    )
    logger.warning('Default admin created - rotate BOOTSTRAP_ADMIN_PASSWORD after setup (user_id=%s)', admin.id)
    return {'seeded': True, 'user_id': admin.id, 'email': email}


def run_bootstrap(db: Session) -> dict:
    admins_count = db.query(User).filter(User.role == Role.ADMIN.value).count()
    if admins_count > 0:
        logger.info('bootstrap_skip admins=%s', admins_count)
        return {'ran': False, 'admins_count': admins_count}

    logger.warning('bootstrap_run_no_admin_detected')
    result = _seed_default_admin_if_needed(db)
    return {'ran': bool(result.get('seeded')), 'admins_count': admins_count, 'admin': result}
