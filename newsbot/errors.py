"""Error types raised by the services and rendered by the API layer."""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401

    def __init__(self, message='Unauthorized'):
        super().__init__(message)


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class ScrapeError(Exception):
    """Raised when an article page cannot be fetched or yields no text."""
