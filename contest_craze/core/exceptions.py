"""
Error taxonomy shared by services, dependencies and routes.

Every failure that reaches a caller carries one of these kinds; the
application-level handler turns them into the standard error envelope.
"""


class ContestCrazeError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ContestCrazeError):
    """No credential, or the credential did not verify"""
    status_code = 401
    default_message = "Unauthorized access"


class Forbidden(ContestCrazeError):
    """Valid credential, insufficient privilege or identity mismatch"""
    status_code = 403
    default_message = "Forbidden access"


class NotFound(ContestCrazeError):
    """Referenced contest, user or submission does not exist"""
    status_code = 404
    default_message = "Resource not found"


class InvalidState(ContestCrazeError):
    """The record exists but is not in a state that allows the operation"""
    status_code = 400
    default_message = "Operation not allowed in the current state"


class NotRegistered(ContestCrazeError):
    """Submission attempted without a prior participation"""
    status_code = 403
    default_message = "User has not registered for this contest."


class StoreError(ContestCrazeError):
    """Persistence failure, not further distinguished"""
    status_code = 500
    default_message = "Database operation failed"
