"""Error taxonomy shared by services and routers."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for failures a use case reports to its caller."""

    status_code = 500
    default_message = "Internal error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Bad shape, length or reserved value; fixable by the user."""

    status_code = 400
    default_message = "Invalid request."


class AuthenticationError(ServiceError):
    status_code = 401
    default_message = "Not authenticated."


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found."


class ConflictError(ServiceError):
    status_code = 409
    default_message = "Conflict."


class InternalError(ServiceError):
    """Storage or other unexpected failure. Details go to the log, not the user."""

    status_code = 500


class InvalidCredentialsError(AuthenticationError):
    default_message = "Invalid credentials."


class AccountExistsError(ConflictError):
    default_message = "Email already registered."
