# backend/utils/errors.py
"""Business errors raised by the service layer.

Each error carries a stable ``kind`` and the HTTP status it is answered with;
``main.py`` turns them into ``{"kind": ..., "detail": ...}`` responses.
"""


class ServiceError(Exception):
    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ServiceError):
    kind = "NotFound"
    status_code = 404


class Forbidden(ServiceError):
    kind = "Forbidden"
    status_code = 403


class InvalidArgument(ServiceError):
    kind = "InvalidArgument"
    status_code = 400


class InvalidStateTransition(ServiceError):
    kind = "InvalidStateTransition"
    status_code = 400


class Conflict(ServiceError):
    kind = "Conflict"
    status_code = 409


class Unavailable(ServiceError):
    kind = "Unavailable"
    status_code = 503
