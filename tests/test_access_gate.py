import tempfile
import unittest
from datetime import datetime, timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.errors import ForbiddenError, InvalidInputError, UnauthenticatedError
from app.core.time_provider import APP_ZONEINFO, TimeProvider, get_time_provider
from app.db import Base, get_db
from app.models import Brigade, EventPlan, Role, Submission, User
from app.routers import auth, event_plans, users
from app.services.auth_service import (
    InvalidCredentialsError,
    Principal,
    _b64url_encode,
    authenticate,
    authorize,
    hash_password,
    issue_token,
    login,
    revoke_token,
)
from app.services.user_service import create_user


class FixedTimeProvider(TimeProvider):
    def __init__(self, frozen_dt: datetime):
        self._frozen_dt = frozen_dt

    def now(self) -> datetime:
        return self._frozen_dt


ISSUED_AT = datetime(2026, 10, 19, 10, 0, tzinfo=APP_ZONEINFO)


class AccessGateTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(cls._tmpdir.name) / 'test_access_gate.db'
        cls._engine = create_engine(f"sqlite:///{db_path}", connect_args={'check_same_thread': False})
        cls._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=cls._engine)
        Base.metadata.create_all(bind=cls._engine)

        app = FastAPI()
        app.include_router(auth.router)
        app.include_router(event_plans.router)
        app.include_router(users.router)

        def override_get_db():
            db = cls._session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        cls.app = app
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls):
        cls.client.close()
        cls._engine.dispose()
        cls._tmpdir.cleanup()

    def setUp(self):
        self.app.dependency_overrides.pop(get_time_provider, None)
        db = self._session_factory()
        try:
            db.query(Submission).delete()
            db.query(EventPlan).delete()
            db.query(User).delete()
            db.query(Brigade).delete()
            db.commit()
            brigade = Brigade(name='B1')
            db.add(brigade)
            db.commit()
            admin = create_user(
                db,
                name='Admin One',
                role=Role.ADMIN,
                email='Admin1@Example.com',
                password_hash=hash_password('admin-pass'),
            )
            student = create_user(
                db,
                name='Student One',
                role=Role.STUDENT,
                roll_number='22CS001',
                brigade_id=brigade.id,
                password_hash=hash_password('student-pass'),
            )
            self.brigade_id = int(brigade.id)
            self.admin_id = int(admin.id)
            self.student_id = int(student.id)
        finally:
            db.close()

    def _login(self, identifier, password, is_student):
        resp = self.client.post(
            '/auth/login',
            json={'identifier': identifier, 'password': password, 'is_student': is_student},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()['token']

    def _student_token(self):
        return self._login('22CS001', 'student-pass', True)

    def _admin_token(self):
        return self._login('admin1@example.com', 'admin-pass', False)

    def test_authenticate_returns_principal_from_store(self):
        db = self._session_factory()
        try:
            student = db.get(User, self.student_id)
            token = issue_token(student, time_provider=FixedTimeProvider(ISSUED_AT))['token']
            principal = authenticate(db, token, time_provider=FixedTimeProvider(ISSUED_AT + timedelta(hours=1)))
        finally:
            db.close()
        self.assertEqual(principal.id, self.student_id)
        self.assertEqual(principal.role, Role.STUDENT)
        self.assertEqual(principal.brigade_id, self.brigade_id)
        self.assertEqual(principal.brigade_name, 'B1')
        self.assertTrue(principal.active)

    def test_expired_token_is_rejected_with_generic_message(self):
        db = self._session_factory()
        try:
            student = db.get(User, self.student_id)
            token = issue_token(student, time_provider=FixedTimeProvider(ISSUED_AT))['token']
            with self.assertRaises(UnauthenticatedError) as ctx:
                authenticate(db, token, time_provider=FixedTimeProvider(ISSUED_AT + timedelta(hours=169)))
        finally:
            db.close()
        self.assertEqual(ctx.exception.reason, 'expired_token')
        self.assertEqual(str(ctx.exception), 'Unauthorized')

    def test_expired_and_deactivated_look_identical_over_http(self):
        expired_token = self._student_token()
        self.app.dependency_overrides[get_time_provider] = lambda: FixedTimeProvider(
            datetime.now(APP_ZONEINFO) + timedelta(days=30)
        )
        expired = self.client.get('/auth/profile', headers={'Authorization': f'Bearer {expired_token}'})
        self.app.dependency_overrides.pop(get_time_provider, None)

        live_token = self._student_token()
        db = self._session_factory()
        try:
            db.get(User, self.student_id).is_active = False
            db.commit()
        finally:
            db.close()
        inactive = self.client.get('/auth/profile', headers={'Authorization': f'Bearer {live_token}'})

        self.assertEqual(expired.status_code, 401)
        self.assertEqual(inactive.status_code, 401)
        self.assertEqual(expired.json(), inactive.json())
        self.assertEqual(inactive.json()['detail'], 'Unauthorized')

    def test_deactivation_applies_to_next_request(self):
        student_token = self._student_token()
        admin_token = self._admin_token()
        headers = {'Authorization': f'Bearer {student_token}'}

        self.assertEqual(self.client.get('/auth/profile', headers=headers).status_code, 200)
        resp = self.client.put(
            f'/api/users/{self.student_id}/active',
            json={'is_active': False},
            headers={'Authorization': f'Bearer {admin_token}'},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()['is_active'])
        self.assertEqual(self.client.get('/auth/profile', headers=headers).status_code, 401)

        self.client.put(
            f'/api/users/{self.student_id}/active',
            json={'is_active': True},
            headers={'Authorization': f'Bearer {admin_token}'},
        )
        self.assertEqual(self.client.get('/auth/profile', headers=headers).status_code, 200)

    def test_admin_cannot_deactivate_self(self):
        admin_token = self._admin_token()
        resp = self.client.put(
            f'/api/users/{self.admin_id}/active',
            json={'is_active': False},
            headers={'Authorization': f'Bearer {admin_token}'},
        )
        self.assertEqual(resp.status_code, 400)

    def test_logout_revokes_only_that_token(self):
        first = self._student_token()
        second = self._student_token()
        self.assertNotEqual(first, second)

        resp = self.client.post('/auth/logout', headers={'Authorization': f'Bearer {first}'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get('/auth/profile', headers={'Authorization': f'Bearer {first}'}).status_code, 401)
        self.assertEqual(self.client.get('/auth/profile', headers={'Authorization': f'Bearer {second}'}).status_code, 200)

    def test_revoked_token_rejected_by_service(self):
        db = self._session_factory()
        try:
            token = issue_token(db.get(User, self.admin_id))['token']
            revoke_token(token)
            with self.assertRaises(UnauthenticatedError) as ctx:
                authenticate(db, token)
        finally:
            db.close()
        self.assertEqual(ctx.exception.reason, 'revoked_token')

    def test_missing_and_malformed_tokens_are_rejected(self):
        self.assertEqual(self.client.get('/auth/profile').status_code, 401)
        resp = self.client.get('/auth/profile', headers={'Authorization': 'Bearer not-a-token'})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()['detail'], 'Unauthorized')

    def test_forged_payload_fails_signature_check(self):
        token = self._student_token()
        header_part, _, signature_part = token.split('.')
        forged_payload = _b64url_encode(f'{{"sub":{self.admin_id},"exp":4102444800}}'.encode('utf-8'))
        forged = f'{header_part}.{forged_payload}.{signature_part}'
        resp = self.client.get('/auth/profile', headers={'Authorization': f'Bearer {forged}'})
        self.assertEqual(resp.status_code, 401)

    def test_login_failures_share_one_message(self):
        attempts = [
            {'identifier': '22CS001', 'password': 'wrong-pass', 'is_student': True},
            {'identifier': '22CS001', 'password': 'student-pass', 'is_student': False},
            {'identifier': 'admin1@example.com', 'password': 'admin-pass', 'is_student': True},
            {'identifier': 'nobody@example.com', 'password': 'admin-pass', 'is_student': False},
            {'identifier': '22CS001', 'password': 'abc', 'is_student': True},
            {'identifier': '22CS001', 'password': '', 'is_student': True},
        ]
        for body in attempts:
            resp = self.client.post('/auth/login', json=body)
            self.assertEqual(resp.status_code, 401, body)
            self.assertEqual(resp.json()['detail'], 'Invalid credentials')

    def test_expired_rejection_is_logged_without_the_token(self):
        token = self._student_token()
        self.app.dependency_overrides[get_time_provider] = lambda: FixedTimeProvider(
            datetime.now(APP_ZONEINFO) + timedelta(days=30)
        )
        headers = {'Authorization': f'Bearer {token}', 'X-Forwarded-For': '203.0.113.7'}
        with self.assertLogs('app.services.auth_service', level='WARNING') as logs:
            resp = self.client.get('/auth/profile', headers=headers)
        self.assertEqual(resp.status_code, 401)
        output = '\n'.join(logs.output)
        self.assertIn('auth_rejected reason=expired_token', output)
        self.assertIn(f'user_id={self.student_id}', output)
        self.assertIn('ip=203.0.113.7', output)
        self.assertNotIn(token, output)
        self.assertNotIn(token.split('.')[2], output)

    def test_deactivated_rejection_is_logged(self):
        token = self._student_token()
        db = self._session_factory()
        try:
            db.get(User, self.student_id).is_active = False
            db.commit()
        finally:
            db.close()
        headers = {'Authorization': f'Bearer {token}', 'X-Forwarded-For': '198.51.100.20'}
        with self.assertLogs('app.services.auth_service', level='WARNING') as logs:
            resp = self.client.get('/auth/profile', headers=headers)
        self.assertEqual(resp.status_code, 401)
        output = '\n'.join(logs.output)
        self.assertIn('reason=inactive_subject', output)
        self.assertIn(f'user_id={self.student_id}', output)
        self.assertIn('ip=198.51.100.20', output)
        self.assertNotIn(token, output)

    def test_forbidden_request_is_logged(self):
        token = self._student_token()
        headers = {'Authorization': f'Bearer {token}', 'X-Forwarded-For': '192.0.2.44'}
        with self.assertLogs('app.services.auth_service', level='WARNING') as logs:
            resp = self.client.put(f'/api/users/{self.admin_id}/active', json={'is_active': False}, headers=headers)
        self.assertEqual(resp.status_code, 403)
        output = '\n'.join(logs.output)
        self.assertIn('auth_forbidden reason=role_not_allowed', output)
        self.assertIn(f'user_id={self.student_id}', output)
        self.assertIn('required=admin', output)
        self.assertIn('ip=192.0.2.44', output)
        self.assertNotIn(token, output)

    def test_failed_login_log_omits_password(self):
        with self.assertLogs('app.services.auth_service', level='WARNING') as logs:
            resp = self.client.post(
                '/auth/login',
                json={'identifier': '22CS001', 'password': 'hunter2-secret', 'is_student': True},
                headers={'X-Forwarded-For': '203.0.113.9'},
            )
        self.assertEqual(resp.status_code, 401)
        output = '\n'.join(logs.output)
        self.assertIn('reason=bad_password', output)
        self.assertIn('ip=203.0.113.9', output)
        self.assertNotIn('hunter2-secret', output)
        self.assertNotIn('22CS001', output)

    def test_inactive_user_cannot_log_in(self):
        db = self._session_factory()
        try:
            db.get(User, self.student_id).is_active = False
            db.commit()
            with self.assertRaises(InvalidCredentialsError):
                login(db, '22CS001', 'student-pass', as_student=True)
        finally:
            db.close()

    def test_profile_reflects_stored_record(self):
        token = self._admin_token()
        resp = self.client.get('/auth/profile', headers={'Authorization': f'Bearer {token}'})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body['email'], 'admin1@example.com')
        self.assertEqual(body['role'], 'admin')

    def test_student_is_forbidden_from_admin_endpoints(self):
        headers = {'Authorization': f'Bearer {self._student_token()}'}
        create = self.client.post(
            '/api/event-plans',
            json={
                'title': 'Campus tour',
                'plan_date': '2026-10-19',
                'start_time': '10:00:00',
                'plan_type': 'withoutSubmission',
            },
            headers=headers,
        )
        self.assertEqual(create.status_code, 403)
        self.assertEqual(create.json()['detail'], 'Forbidden')

        toggle = self.client.put(f'/api/users/{self.admin_id}/active', json={'is_active': False}, headers=headers)
        self.assertEqual(toggle.status_code, 403)

    def test_authorize_is_set_membership(self):
        principal = Principal(id=1, role=Role.STUDENT, name='S', active=True)
        authorize(principal, {Role.STUDENT, Role.ADMIN})
        with self.assertRaises(ForbiddenError):
            authorize(principal, {Role.ADMIN})
        with self.assertRaises(ForbiddenError):
            authorize(principal, set())

    def test_student_requires_brigade(self):
        db = self._session_factory()
        try:
            with self.assertRaises(InvalidInputError):
                create_user(db, name='No Brigade', role=Role.STUDENT, roll_number='22CS999', password_hash='')
        finally:
            db.close()


if __name__ == '__main__':
    unittest.main()
