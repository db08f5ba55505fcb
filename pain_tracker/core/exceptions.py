"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Authentication failed or session missing."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Document belongs to another user."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Conflict exception, e.g. an email that is already registered."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ServiceUnavailableException(AppException):
    """A Firebase backend could not be reached or refused the call."""

    def __init__(self, message: str = "The request could not be completed. Please try again."):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class StoreException(ServiceUnavailableException):
    """A Firestore write, read or delete failed.

    Not retried; the client is expected to re-trigger the operation.
    """


class UploadException(AppException):
    """A single file could not be stored in Cloud Storage."""

    def __init__(self, filename: str, message: str = "Upload failed"):
        """Initialize with the failing file name and a 502 status code."""
        self.filename = filename
        super().__init__(message, status_code=502)
