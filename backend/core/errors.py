"""Application error taxonomy.

Routes translate these into HTTP responses; see ``backend.main``.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidToken(AppError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Record already exists"

    def __init__(self, message: str | None = None, field: str | None = None):
        super().__init__(message)
        self.field = field


class StorageUnavailable(AppError):
    status_code = 503
    default_message = "Database unavailable. Verify DATABASE_URL and database credentials."
