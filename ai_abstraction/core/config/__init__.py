"""
Configuration Module

Centralized, type-safe configuration for the abstraction layer.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants and enums (ProviderType, Stage, defaults)

Usage:
------
```python
from ai_abstraction.core.config import get_settings
from ai_abstraction.core.config.constants import ProviderType

settings = get_settings()
ttl_ms = settings.cache.CACHE_TTL_MS
```

Testing:
-------
```python
import os
from ai_abstraction.core.config import reload_settings

os.environ["CACHE_TTL_MS"] = "1000"
settings = reload_settings()
assert settings.cache.CACHE_TTL_MS == 1000
```
"""

from ai_abstraction.core.config.constants import (
    CACHE_DEFAULT_TTL_MS,
    CACHE_EVICTION_BATCH,
    CACHE_MAX_ENTRIES,
    CACHE_SWEEP_INTERVAL_SECONDS,
    FALLBACK_ENABLED,
    FALLBACK_MAX_RETRIES,
    FALLBACK_ORDER,
    FALLBACK_RETRY_DELAY_MS,
    ProviderType,
    Stage,
)
from ai_abstraction.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "ProviderType",
    "Stage",
    # Cache defaults
    "CACHE_DEFAULT_TTL_MS",
    "CACHE_MAX_ENTRIES",
    "CACHE_EVICTION_BATCH",
    "CACHE_SWEEP_INTERVAL_SECONDS",
    # Fallback defaults
    "FALLBACK_ENABLED",
    "FALLBACK_MAX_RETRIES",
    "FALLBACK_RETRY_DELAY_MS",
    "FALLBACK_ORDER",
]
