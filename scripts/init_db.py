from datetime import time
from pathlib import Path
import sys


# Ensure imports work when running this file directly: `python scripts/init_db.py`.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.time_provider import default_time_provider
from app.db import Base, SessionLocal, engine
from app.models import Brigade, EventPlan, Role
from app.services.activity_service import create_activity
from app.services.auth_service import hash_password
from app.services.user_service import create_user


SAMPLE_PASSWORD = 'orientation'

SAMPLE_BRIGADES = {
    'Aryabhata': ['22CS001', '22CS002', '22EC001'],
    'Raman': ['22ME001', '22CE001'],
}

SAMPLE_DAY = [
    ('Welcome address', time(9, 30), time(10, 30), False, None, None),
    ('Campus tour', time(11, 0), time(12, 30), True, 'file', 10),
    ('Reflection note', time(14, 0), None, True, 'text', None),
    ('Club fair sign-up link', time(16, 0), time(17, 0), True, 'link', None),
]


Base.metadata.create_all(bind=engine)

db = SessionLocal()
try:
    if not db.query(Brigade).first():
        password_hash = hash_password(SAMPLE_PASSWORD)
        for brigade_name, roll_numbers in SAMPLE_BRIGADES.items():
            brigade = Brigade(name=brigade_name)
            db.add(brigade)
            db.commit()
            db.refresh(brigade)
            for roll_number in roll_numbers:
                create_user(
                    db,
                    name=f'Fresher {roll_number}',
                    role=Role.STUDENT,
                    roll_number=roll_number,
                    brigade_id=brigade.id,
                    password_hash=password_hash,
                )

    today = default_time_provider.today()
    if not db.query(EventPlan).filter(EventPlan.plan_date == today).first():
        for title, start, end, requires, kind, max_mib in SAMPLE_DAY:
            create_activity(
                db,
                title=title,
                plan_date=today,
                start_time=start,
                end_time=end,
                requires_submission=requires,
                submission_kind=kind,
                max_size_mib=max_mib,
            )
finally:
    db.close()

print(f'DB initialized with sample brigades and today\'s plan (student password: {SAMPLE_PASSWORD}).')
