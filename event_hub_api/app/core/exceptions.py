"""
Exceptions raised by the service layer.

Services signal failures by raising ``ValueError`` subclasses.  The
application registers handlers in ``main`` that translate each type
into the matching HTTP status and the standard response envelope, so
endpoints rarely need their own ``try``/``except`` blocks.
"""


class ServiceError(ValueError):
    """Base class for expected, user-facing service failures."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BusinessRuleError(ServiceError):
    """A request was well formed but violates a business rule."""

    status_code = 400


class PermissionDeniedError(ServiceError):
    """The caller is authenticated but may not perform the operation."""

    status_code = 403


class NotFoundError(ServiceError):
    """A referenced resource does not exist."""

    status_code = 404

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} not found")


class AuthenticationError(ServiceError):
    """Credentials were missing, wrong or belong to an unusable account."""

    status_code = 401
