# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for the FlowBridge backend.

This package contains:
- config: Configuration management
- dependencies: Dependency injection
- errors: Custom exceptions
- logging: Structured logging
"""

from flowbridge.core.config import get_config, Config
from flowbridge.core.errors import FlowBridgeError, EngineError, ConfigurationError
from flowbridge.core.logging import get_logger

__all__ = [
    "get_config",
    "Config",
    "FlowBridgeError",
    "EngineError",
    "ConfigurationError",
    "get_logger",
]
