"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    kind = "app_error"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    kind = "validation"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when the caller could not be identified."""

    kind = "authentication"

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class AuthorizationError(AppError):
    """Raised when the caller may not act on a resource."""

    kind = "authorization"

    def __init__(self, message="You are not allowed to do that."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    kind = "not_found"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when the current state of a resource forbids the operation."""

    kind = "conflict"

    def __init__(self, message="Resource state conflict."):
        """Initialize the error."""
        super().__init__(message, 409)


class PolicyError(AppError):
    """Raised when a request is well formed but breaks a business rule."""

    kind = "policy"

    def __init__(self, message="Request violates outing policy."):
        """Initialize the error."""
        super().__init__(message, 422)


class ExternalServiceError(AppError):
    """Raised by push and real-time adapters when delivery fails."""

    kind = "external_service"

    def __init__(self, message="External service unavailable."):
        """Initialize the error."""
        super().__init__(message, 502)
