"""
Error taxonomy for lifecycle operations.
Services raise these; main.py maps each class to an HTTP status with a {"detail": message} body.
"""


class LifecycleError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LifecycleError):
    """A step or action precondition is unmet. Nothing was written."""

    status_code = 422


class NotFoundError(LifecycleError):
    status_code = 404


class AccessDeniedError(LifecycleError):
    status_code = 403


class InvalidTransitionError(LifecycleError):
    """A state machine refused the requested move."""

    status_code = 409


class ConflictError(LifecycleError):
    """The row changed since the caller loaded it."""

    status_code = 409


class PersistenceError(LifecycleError):
    """A write or blob operation failed part-way; the action can be retried."""

    status_code = 503
