import logging

from app.db import Base, SessionLocal, engine
from app.services.bootstrap_service import run_bootstrap


logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s %(message)s')
logger = logging.getLogger('bootstrap')


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = run_bootstrap(db)
    finally:
        db.close()
    admin = result.get('admin') or {}
    if result.get('ran'):
        logger.info('Bootstrap created admin user_id=%s email=%s', admin.get('user_id'), admin.get('email'))
    elif admin:
        logger.warning('Bootstrap could not create an admin: %s', admin.get('reason'))
    else:
        logger.info('Bootstrap skipped: %s admin account(s) already present', result.get('admins_count'))


if __name__ == '__main__':
    main()
