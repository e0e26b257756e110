class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(AppError):
    status_code = 400


class ExtractionError(ValidationError):
    pass


class InvalidQuestionIndex(ValidationError):
    pass


class InvalidStatusError(ValidationError):
    pass


class AuthenticationError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """A uniqueness or concurrency violation at the store boundary."""

    status_code = 409

    def __init__(self, message: str, *, field: str | None = None, code: str | None = None):
        super().__init__(message, code=code)
        self.field = field


class StaleWriteError(ConflictError):
    pass


class ConcurrentUpdateError(ConflictError):
    pass


class PersistenceError(AppError):
    status_code = 500


class UpstreamUnavailable(AppError):
    status_code = 502
