from .fallback import (
    TRANSITIONS,
    ChainRun,
    FallbackOrchestrator,
    FallbackState,
    build_fallback_chain,
)

__all__ = [
    "TRANSITIONS",
    "ChainRun",
    "FallbackOrchestrator",
    "FallbackState",
    "build_fallback_chain",
]
