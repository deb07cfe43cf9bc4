"""
================================================================================
Conduit Tools Common Utilities
================================================================================

Shared configuration, error types and logging setup for the harness.

Exports:
    - EnvironmentConfig: Layered, immutable configuration
    - Credentials: Seeded user credentials
    - init_logger: Initialize loguru with harness settings
    - HarnessError and its subclasses

Usage:
    from conduit_tools.common import EnvironmentConfig, init_logger

    config = EnvironmentConfig.instance()
    init_logger(config)

================================================================================
"""

from .environment_config import Credentials, EnvironmentConfig
from .exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    HarnessError,
    PreconditionNotMet,
    TokenMismatchError,
    UiInteractionError,
    WaitTimeoutError,
)
from .logging_setup import init_logger

__all__ = [
    "ApiError",
    "AuthError",
    "ConfigError",
    "Credentials",
    "EnvironmentConfig",
    "HarnessError",
    "PreconditionNotMet",
    "TokenMismatchError",
    "UiInteractionError",
    "WaitTimeoutError",
    "init_logger",
]
