from __future__ import annotations

from contextvars import ContextVar


current_endpoint: ContextVar[str] = ContextVar('current_endpoint', default='background')
current_client_ip: ContextVar[str] = ContextVar('current_client_ip', default='-')


def client_ip_of(request) -> str:
    forwarded = request.headers.get('x-forwarded-for', '')
    if forwarded:
        return forwarded.split(',', 1)[0].strip()
    client = getattr(request, 'client', None)
    return client.host if client else '-'
