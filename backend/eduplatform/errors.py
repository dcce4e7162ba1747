"""Domain exceptions raised by services and the auth layer.

Each exception carries the HTTP status it maps to; `main.py` renders
them as `{"error": message}` responses.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(ServiceError, ValueError):
    status_code = 400


class UnauthenticatedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class FeatureNotImplementedError(ServiceError):
    status_code = 501
