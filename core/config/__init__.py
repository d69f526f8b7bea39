"""
Runtime Configuration Module

Provides configuration loading and management for the commitment service.
"""

from .runtime import (
    BACKENDS,
    CacheConfig,
    ContentConfig,
    HttpConfig,
    LedgerConfig,
    RuntimeConfig,
    SaltsConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "BACKENDS",
    "CacheConfig",
    "ContentConfig",
    "HttpConfig",
    "LedgerConfig",
    "RuntimeConfig",
    "SaltsConfig",
    "get_default_config",
    "set_default_config",
]
