"""Custom exceptions for the PC marketplace application."""


class MarketplaceException(Exception):
    """Base exception for all marketplace errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(MarketplaceException):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AuthenticationError(MarketplaceException):
    """Raised when a login or operator token check fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class NotFoundError(MarketplaceException):
    """Raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(MarketplaceException):
    """Raised when a conditional write loses (e.g. scan already published)."""

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, status_code=409)


class StorageError(MarketplaceException):
    """Raised when bucket operations fail."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, status_code=500)


class DatabaseError(MarketplaceException):
    """Raised when database operations fail."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500)


class NotificationError(MarketplaceException):
    """Raised inside the notifier when a broadcast cannot be delivered."""

    def __init__(self, message: str = "Notification delivery failed"):
        super().__init__(message, status_code=502)
