"""
Unit Tests for Core Exceptions

Tests the base error contract and the themed exception modules.
"""

import pytest

from ai_abstraction.core import exceptions as exceptions_module
from ai_abstraction.core.exceptions import (
    AdapterNotRegisteredError,
    AIAbstractionError,
    AllProvidersFailedError,
    ConfigurationError,
    CredentialDecryptionError,
    CredentialError,
    ProviderAPIError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderInactiveError,
    ProviderNotFoundError,
    ProviderRateLimitError,
    StreamingError,
    StreamInterruptedError,
)


@pytest.mark.unit
class TestAIAbstractionError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = AIAbstractionError("Test message")

        assert str(error) == "Test message"
        assert error.message == "Test message"
        assert error.details == {}
        assert error.request_id is None

    def test_details_are_copied(self):
        details = {"provider": "openai"}
        error = AIAbstractionError("Test", details=details)

        error.details["extra"] = True

        assert details == {"provider": "openai"}

    def test_to_dict(self):
        error = ProviderNotFoundError(
            "Provider prov-1 not found", request_id="req_1", details={"provider_id": "prov-1"}
        )

        assert error.to_dict() == {
            "error_type": "ProviderNotFoundError",
            "message": "Provider prov-1 not found",
            "request_id": "req_1",
            "details": {"provider_id": "prov-1"},
        }

    def test_with_context_chains(self):
        error = AIAbstractionError("Test").with_context(provider="anthropic", attempt=2)

        assert error.details == {"provider": "anthropic", "attempt": 2}

    def test_from_exception_wraps_original(self):
        original = ValueError("bad padding")

        error = CredentialDecryptionError.from_exception(
            original, message="Failed to decrypt", provider="openai"
        )

        assert isinstance(error, CredentialDecryptionError)
        assert error.message == "Failed to decrypt"
        assert error.details["original_error"] == "ValueError"
        assert error.details["original_message"] == "bad padding"
        assert error.details["provider"] == "openai"

    def test_repr_includes_request_id(self):
        error = AIAbstractionError("Test", request_id="req_9")

        assert "request_id='req_9'" in repr(error)


@pytest.mark.unit
class TestProviderAPIError:
    """Test HTTP-status carrying provider errors."""

    def test_status_code_and_body(self):
        error = ProviderAPIError("OpenAI API error: 500 boom", status_code=500, body="boom")

        assert error.status_code == 500
        assert error.body == "boom"
        assert error.details["status_code"] == 500

    def test_status_code_omitted(self):
        error = ProviderAPIError("failure")

        assert error.status_code is None
        assert "status_code" not in error.details

    @pytest.mark.parametrize("error_class", [ProviderAuthenticationError, ProviderRateLimitError])
    def test_specialized_errors_are_api_errors(self, error_class):
        error = error_class("denied", status_code=401)

        assert isinstance(error, ProviderAPIError)
        assert isinstance(error, ProviderError)


@pytest.mark.unit
class TestExceptionHierarchy:
    """Test that themed exceptions sit under the expected bases."""

    @pytest.mark.parametrize(
        "error_class,base",
        [
            (ProviderNotFoundError, ConfigurationError),
            (ProviderInactiveError, ConfigurationError),
            (AdapterNotRegisteredError, ConfigurationError),
            (CredentialDecryptionError, CredentialError),
            (AllProvidersFailedError, ProviderError),
            (StreamInterruptedError, StreamingError),
        ],
    )
    def test_inheritance(self, error_class, base):
        error = error_class("test")

        assert isinstance(error, base)
        assert isinstance(error, AIAbstractionError)

    def test_no_cache_error_type(self):
        """Test cache operations have no exception type of their own."""
        assert "CacheError" not in exceptions_module.__all__
        assert not hasattr(exceptions_module, "CacheError")
