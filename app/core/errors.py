"""Error taxonomy shared by the gate and the submission services.

Services raise these; routers translate them with ``status_code``. The
authentication and authorization errors carry a fixed public message so the
caller cannot tell an expired token from a deactivated account.
"""
from __future__ import annotations


class PortalError(ValueError):
    status_code = 400
    kind = 'error'


class UnauthenticatedError(PortalError):
    status_code = 401
    kind = 'unauthenticated'
    public_message = 'Unauthorized'

    def __init__(self, reason: str = 'invalid_token'):
        super().__init__(self.public_message)
        self.reason = reason


class ForbiddenError(PortalError):
    status_code = 403
    kind = 'forbidden'
    public_message = 'Forbidden'

    def __init__(self, reason: str = 'role_not_allowed'):
        super().__init__(self.public_message)
        self.reason = reason


class NotFoundError(PortalError):
    status_code = 404
    kind = 'not_found'


class InvalidOperationError(PortalError):
    status_code = 400
    kind = 'invalid_operation'


class InvalidInputError(PortalError):
    status_code = 400
    kind = 'invalid_input'


class ConflictError(PortalError):
    status_code = 409
    kind = 'conflict'
