"""Application error taxonomy mapped to HTTP responses at the API boundary."""


class AppError(Exception):
    """Base application error."""
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class UnauthorizedError(AppError):
    """Missing or invalid bearer credential."""
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(AppError):
    """Valid credential, but not an admin."""
    status_code = 403

    def __init__(self, message: str = "Forbidden: Not an admin"):
        super().__init__(message)


class InvalidRequestError(AppError):
    """Bad or missing input."""
    status_code = 400


class NotFoundError(AppError):
    """Target document does not exist."""
    status_code = 404


class ConflictError(AppError):
    """Target document already exists."""
    status_code = 409


class TransactionError(AppError):
    """Transaction handle used out of order."""
    status_code = 500
