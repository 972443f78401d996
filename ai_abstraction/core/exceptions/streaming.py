"""
Streaming Exceptions

Errors specific to streaming chat completions.
"""

from ai_abstraction.core.exceptions.base import AIAbstractionError


class StreamingError(AIAbstractionError):
    """Base exception for streaming errors."""
    pass


class StreamInterruptedError(StreamingError):
    """
    Raised when a provider fails after chunks were already delivered.

    Partial output cannot be rewound, so no fallback provider is tried.
    """
    pass
