"""
Custom exceptions for styleprompt.

This module defines all custom exceptions used throughout the application.
"""


class StylepromptError(Exception):
    """Base exception for all styleprompt errors."""

    pass


class ValidationError(StylepromptError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class MissingInputError(ValidationError):
    """Raised before a run starts when the image or the credential is missing."""

    pass


class APIError(StylepromptError):
    """Raised when an API call fails."""

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        """
        Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code (if applicable)
            response: Raw API response (if available)
        """
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class AuthenticationError(APIError):
    """Raised when the credential is missing or rejected by the model service."""

    pass


class ModelUnavailableError(APIError):
    """Raised when the model service will not serve the request (404, 429, 5xx, other rejections)."""

    pass


class MalformedResponseError(APIError):
    """Raised when a response does not match the structured prompt schema."""

    pass


class NetworkError(StylepromptError):
    """Raised when a network operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize network error.

        Args:
            message: Error message
            original_error: The underlying exception that caused this error
        """
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(NetworkError):
    """Raised when a request to the model service times out."""

    pass


class CancellationError(StylepromptError):
    """Raised when an operation is cancelled by the user."""

    pass


class ConfigurationError(StylepromptError):
    """Raised when there is a configuration problem."""

    pass


class ImageProcessingError(StylepromptError):
    """Raised when image processing fails."""

    def __init__(self, message: str, image_path: str = "") -> None:
        """
        Initialize image processing error.

        Args:
            message: Error message
            image_path: Path to the image that caused the error
        """
        self.image_path = image_path
        super().__init__(message)
