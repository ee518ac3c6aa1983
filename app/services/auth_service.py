from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.time_provider import TimeProvider, default_time_provider
from app.models import Role, User
from app.services.user_service import find_user_by_credential, find_user_by_id


_REVOKED_TOKENS: set[str] = set()
_TOKENS_LOCK = threading.RLock()
logger = logging.getLogger(__name__)

_MIN_PASSWORD_LENGTH = 6


class InvalidCredentialsError(ValueError):
    """Raised for any failed login; the message never says which check failed."""

    def __init__(self):
        super().__init__('Invalid credentials')


@dataclass(frozen=True)
class Principal:
    id: int
    role: Role
    name: str
    active: bool
    brigade_id: int | None = None
    brigade_name: str = ''

    @classmethod
    def from_user(cls, user: User) -> 'Principal':
        return cls(
            id=int(user.id),
            role=Role(user.role),
            name=user.name,
            active=bool(user.is_active),
            brigade_id=user.brigade_id,
            brigade_name=user.brigade_name or '',
        )


def _mask_identifier(identifier: str) -> str:
    clean = (identifier or '').strip()
    if '@' in clean:
        local, domain = clean.split('@', 1)
        return f'{local[:2]}***@{domain}'
    if len(clean) < 4:
        return '***'
    return f'***{clean[-4:]}'


def hash_password(password: str) -> str:
    if len(password or '') < _MIN_PASSWORD_LENGTH:
        raise ValueError(f'Password must be at least {_MIN_PASSWORD_LENGTH} characters')
    salt = secrets.token_hex(16)
    iterations = 120000
    derived = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt.encode('utf-8'), iterations)
    return f'pbkdf2_sha256${iterations}${salt}${derived.hex()}'


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, iter_raw, salt, digest_hex = password_hash.split('$', 3)
        if algo != 'pbkdf2_sha256':
            return False
        iterations = int(iter_raw)
        derived = hashlib.pbkdf2_hmac('sha256', (password or '').encode('utf-8'), salt.encode('utf-8'), iterations).hex()
        return hmac.compare_digest(derived, digest_hex)
    except ValueError:
        return False


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def _b64url_decode(value: str) -> bytes:
    padding = '=' * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode('ascii'))


def _encode_jwt(payload: dict) -> str:
    header = {'alg': 'HS256', 'typ': 'JWT'}
    header_part = _b64url_encode(json.dumps(header, separators=(',', ':')).encode('utf-8'))
    payload_part = _b64url_encode(json.dumps(payload, separators=(',', ':')).encode('utf-8'))
    signing_input = f'{header_part}.{payload_part}'.encode('ascii')
    signature = hmac.new(settings.auth_secret.encode('utf-8'), signing_input, hashlib.sha256).digest()
    signature_part = _b64url_encode(signature)
    return f'{header_part}.{payload_part}.{signature_part}'


def _decode_jwt(token: str) -> dict | None:
    try:
        header_part, payload_part, signature_part = token.split('.')
    except ValueError:
        return None

    try:
        signing_input = f'{header_part}.{payload_part}'.encode('ascii')
        provided_signature = _b64url_decode(signature_part)
    except (UnicodeEncodeError, ValueError):
        return None
    expected_signature = hmac.new(settings.auth_secret.encode('utf-8'), signing_input, hashlib.sha256).digest()
    if not hmac.compare_digest(provided_signature, expected_signature):
        return None

    try:
        payload = json.loads(_b64url_decode(payload_part).decode('utf-8'))
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None
    return payload


def issue_token(user: User, *, time_provider: TimeProvider = default_time_provider) -> dict:
    now = time_provider.now()
    expires_at = now + timedelta(hours=settings.auth_token_expiry_hours)
    token = _encode_jwt(
        {
            'sub': int(user.id),
            'iat': int(now.timestamp()),
            'exp': int(expires_at.timestamp()),
            'jti': secrets.token_hex(8),
        }
    )
    return {
        'token': token,
        'user_id': int(user.id),
        'role': user.role,
        'expires_at': expires_at.isoformat(),
    }


def login(
    db: Session,
    identifier: str,
    password: str,
    *,
    as_student: bool = False,
    client_ip: str = '-',
    time_provider: TimeProvider = default_time_provider,
) -> dict:
    masked = _mask_identifier(identifier)
    user = find_user_by_credential(db, identifier, as_student=as_student)
    if not user or not user.is_active:
        logger.warning('auth_login_failed reason=unknown_or_inactive identifier=%s ip=%s', masked, client_ip)
        raise InvalidCredentialsError()

    expected_role = Role.STUDENT.value if as_student else Role.ADMIN.value
    if user.role != expected_role:
        logger.warning('auth_login_failed reason=role_mismatch user_id=%s ip=%s', user.id, client_ip)
        raise InvalidCredentialsError()

    if not user.password_hash or not _verify_password(password, user.password_hash):
        logger.warning('auth_login_failed reason=bad_password user_id=%s ip=%s', user.id, client_ip)
        raise InvalidCredentialsError()

    payload = issue_token(user, time_provider=time_provider)
    logger.info('auth_login_success user_id=%s role=%s ip=%s', user.id, user.role, client_ip)
    return payload


def _reject(reason: str, client_ip: str, user_id=None) -> UnauthenticatedError:
    logger.warning('auth_rejected reason=%s user_id=%s ip=%s', reason, user_id if user_id is not None else '-', client_ip)
    return UnauthenticatedError(reason)


def authenticate(
    db: Session,
    token: str | None,
    *,
    client_ip: str = '-',
    time_provider: TimeProvider = default_time_provider,
) -> Principal:
    """Resolve a bearer token to a live principal.

    The token only names the subject. Role, brigade and the active flag are
    re-read from the users table on every call so a deactivation applies to
    the very next request.
    """
    if not token:
        raise _reject('missing_token', client_ip)
    with _TOKENS_LOCK:
        if token in _REVOKED_TOKENS:
            raise _reject('revoked_token', client_ip)

    payload = _decode_jwt(token)
    if not payload:
        raise _reject('malformed_token', client_ip)

    try:
        user_id = int(payload.get('sub'))
        expires_at = int(payload.get('exp'))
    except (TypeError, ValueError):
        raise _reject('malformed_claims', client_ip) from None

    if expires_at <= int(time_provider.now().timestamp()):
        raise _reject('expired_token', client_ip, user_id)

    user = find_user_by_id(db, user_id)
    if not user:
        raise _reject('unknown_subject', client_ip, user_id)
    if not user.is_active:
        raise _reject('inactive_subject', client_ip, user_id)
    return Principal.from_user(user)


def authorize(principal: Principal, allowed_roles: Iterable[Role], *, client_ip: str = '-') -> None:
    allowed = frozenset(allowed_roles)
    if principal.role not in allowed:
        error = ForbiddenError()
        logger.warning(
            'auth_forbidden reason=%s user_id=%s role=%s required=%s ip=%s',
            error.reason,
            principal.id,
            principal.role.value,
            ','.join(sorted(role.value for role in allowed)),
            client_ip,
        )
        raise error


def revoke_token(token: str | None) -> None:
    if not token:
        return
    with _TOKENS_LOCK:
        _REVOKED_TOKENS.add(token)
