import sys
import tempfile
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from alembic.runtime.migration import MigrationContext
from sqlalchemy import text

from app.config import settings
from app.db import SessionLocal, engine
from app.models import Submission, User
from app.services.auth_service import _decode_jwt, _encode_jwt


GREEN = '\033[32m'
RED = '\033[31m'
RESET = '\033[0m'


def run_check(name, fn):
    try:
        message = fn() or ''
        suffix = f' - {message}' if message else ''
        print(f'{GREEN}PASS{RESET} {name}{suffix}')
        return True
    except Exception as exc:
        print(f'{RED}FAIL{RESET} {name} - {exc}')
        return False


def check_db_connectivity_and_write():
    with engine.begin() as conn:
        conn.execute(text('SELECT 1'))
        conn.execute(text('CREATE TABLE IF NOT EXISTS _healthcheck_probe (id INTEGER PRIMARY KEY, note TEXT)'))
        conn.execute(text("INSERT INTO _healthcheck_probe (note) VALUES ('probe')"))
        conn.execute(text("DELETE FROM _healthcheck_probe WHERE note='probe'"))
        conn.execute(text('DROP TABLE IF EXISTS _healthcheck_probe'))
    return 'connect + write ok'


def check_alembic_head():
    cfg = Config('alembic.ini')
    script = ScriptDirectory.from_config(cfg)
    heads = set(script.get_heads())
    if not heads:
        raise RuntimeError('No alembic heads found in repository')

    with engine.connect() as conn:
        current = MigrationContext.configure(conn).get_current_revision()

    if current is None:
        raise RuntimeError('No migration version in DB (run alembic upgrade head)')
    if current not in heads:
        raise RuntimeError(f'DB revision {current} is not at head {sorted(heads)}')
    return f'current={current}'


def check_required_env():
    required = {
        'DATABASE_URL': settings.database_url,
        'AUTH_SECRET': settings.auth_secret,
        'UPLOAD_DIR': settings.upload_dir,
    }
    missing = [key for key, value in required.items() if not str(value).strip()]
    if missing:
        raise RuntimeError(f'Missing env vars: {", ".join(missing)}')
    if settings.auth_secret == 'change-me' and settings.app_env != 'local':
        raise RuntimeError('AUTH_SECRET still has the default value')
    return 'all required vars present'


def check_upload_dir_writable():
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=upload_dir, prefix='.probe-', delete=True) as handle:
        handle.write(b'probe')
    return f'dir={upload_dir.resolve()}'


def check_token_signing():
    token = _encode_jwt({'sub': 0, 'exp': 0})
    if _decode_jwt(token) is None:
        raise RuntimeError('Signed token failed to verify')
    if _decode_jwt(token[:-2] + 'xx') is not None:
        raise RuntimeError('Tampered token unexpectedly verified')
    return 'sign + verify + tamper checks ok'


def check_core_tables_accessible():
    db = SessionLocal()
    try:
        admins = db.query(User).filter(User.role == 'admin', User.is_active.is_(True)).count()
        _ = db.query(Submission).limit(1).all()
        if admins == 0:
            raise RuntimeError('No active admin account')
        return f'active_admins={admins}'
    finally:
        db.close()


def main():
    checks = [
        ('Database connectivity and write access', check_db_connectivity_and_write),
        ('Alembic migration status at head', check_alembic_head),
        ('Required environment variables present', check_required_env),
        ('Upload directory writable', check_upload_dir_writable),
        ('Token signing working', check_token_signing),
        ('Users and submissions tables accessible', check_core_tables_accessible),
    ]

    all_ok = True
    for name, fn in checks:
        all_ok = run_check(name, fn) and all_ok

    return 0 if all_ok else 1


if __name__ == '__main__':
    sys.exit(main())
