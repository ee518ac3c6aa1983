from app.routers import auth, day, event_plans, submissions, users

__all__ = [
    'auth',
    'day',
    'event_plans',
    'submissions',
    'users',
]
