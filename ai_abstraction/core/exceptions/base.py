"""
Base Exception Class

This module contains the base exception class that all other exceptions of the
abstraction layer inherit from, plus ConfigurationError.
All specialized exceptions are in their respective themed modules.
"""

from typing import Any


class AIAbstractionError(Exception):
    """
    Base exception for all abstraction layer errors.

    All custom exceptions inherit from this class to enable:
    - Consistent error handling at the chat feature boundary
    - Request ID correlation
    - Structured error logging
    - Rich context for debugging

    Attributes:
        message: Error message
        request_id: Request correlation id (if available)
        details: Additional error details (dict)

    Example:
        raise ProviderAPIError(
            "OpenAI API error: 500 upstream overloaded",
            request_id="req_abc123",
            details={"provider": "openai", "status_code": 500},
        )
    """

    def __init__(
        self, message: str, request_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.request_id = request_id
        self.details = (details or {}).copy()
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message, request_id, and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "request_id": self.request_id,
            "details": self.details,
        }

    def with_context(self, **context) -> "AIAbstractionError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        request_id_str = f", request_id='{self.request_id}'" if self.request_id else ""
        return f"{self.__class__.__name__}(message='{self.message}'{request_id_str}{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        request_id: str | None = None,
        **details
    ) -> "AIAbstractionError":
        """
        Create an error of this class from another exception.

        Useful for wrapping third-party exceptions with additional context.

        Example:
            >>> try:
            ...     api_key = decryptor.decrypt(blob)
            ... except ValueError as e:
            ...     raise CredentialDecryptionError.from_exception(e, provider="openai")
        """
        error_message = message or str(exc)
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        return cls(error_message, request_id=request_id, details=error_details)


class ConfigurationError(AIAbstractionError):
    """Raised when configuration is invalid or missing."""
    pass
