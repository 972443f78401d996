"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .adapter_factory import (
    AsyncFakeDecryptor,
    FakeClock,
    FakeDecryptor,
    RecordingSleep,
    ScriptedAdapter,
    make_instance,
)

__all__ = [
    "AsyncFakeDecryptor",
    "FakeClock",
    "FakeDecryptor",
    "RecordingSleep",
    "ScriptedAdapter",
    "make_instance",
]
