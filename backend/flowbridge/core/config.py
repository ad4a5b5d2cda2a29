# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FlowBridge Configuration - Single source of truth.
YAML for settings. Env vars for secrets and deployment overrides.

Built once at startup and handed to the engine client, the webhook
resolver and the execution controller.
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable application configuration.
    """

    # -- Engine --
    engine_base_url: str = ""
    api_path: str = "/api/v1"
    api_key: Optional[str] = None
    user_agent: str = "FlowBridge/1.0"

    # -- Webhooks --
    webhook_live_url: Optional[str] = None
    webhook_test_url: Optional[str] = None

    # -- HTTP --
    http_timeout: float = 10.0
    webhook_timeout: float = 30.0

    # -- Monitoring --
    monitoring_execution_limit: int = 50
    recent_execution_limit: int = 10
    progress_estimate: int = 50
    insight_execution_limit: int = 200

    # -- Agent chat --
    agent_response_timeout: float = 60.0
    agent_poll_interval: float = 0.7

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"

    # -- Derived URLs --
    @property
    def engine_root(self) -> str:
        return self.engine_base_url.rstrip("/")

    @property
    def api_base_url(self) -> str:
        return f"{self.engine_root}{self.api_path}"

    @property
    def live_webhook_base(self) -> str:
        """Published-workflow webhook root ('' when unset)"""
        if self.webhook_live_url:
            return self.webhook_live_url.rstrip("/")
        return f"{self.engine_root}/webhook" if self.engine_root else ""

    @property
    def test_webhook_base(self) -> str:
        """Draft-workflow webhook root ('' when unset)"""
        if self.webhook_test_url:
            return self.webhook_test_url.rstrip("/")
        return f"{self.engine_root}/webhook-test" if self.engine_root else ""


# =============================================================================
# SECRETS - The ONLY thing that never lives in YAML
# =============================================================================

def get_engine_api_key() -> Optional[str]:
    """API keys cannot be in version control."""
    return os.getenv("N8N_API_KEY")


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = "/app/configs/flowbridge.yaml") -> Config:
    """
    Load configuration from YAML, then apply environment overrides.
    Returns defaults (plus env) if the file doesn't exist.
    """
    y = {}
    if Path(path).exists():
        with open(path) as f:
            y = yaml.safe_load(f) or {}

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    return Config(
        # Engine
        engine_base_url=os.getenv("N8N_BASE_URL") or get(y, "engine", "base_url") or "",
        api_path=get(y, "engine", "api_path") or "/api/v1",
        api_key=get_engine_api_key(),
        user_agent=get(y, "engine", "user_agent") or "FlowBridge/1.0",

        # Webhooks
        webhook_live_url=os.getenv("N8N_WEBHOOK_URL") or get(y, "webhooks", "live_url"),
        webhook_test_url=os.getenv("N8N_WEBHOOK_TEST_URL") or get(y, "webhooks", "test_url"),

        # HTTP
        http_timeout=get(y, "http", "timeouts", "default") or 10.0,
        webhook_timeout=get(y, "http", "timeouts", "webhook_attempt") or 30.0,

        # Monitoring
        monitoring_execution_limit=get(y, "monitoring", "execution_limit") or 50,
        recent_execution_limit=get(y, "monitoring", "recent_limit") or 10,
        progress_estimate=get(y, "monitoring", "progress_estimate") or 50,
        insight_execution_limit=get(y, "insights", "execution_limit") or 200,

        # Agent chat
        agent_response_timeout=get(y, "agent", "response_timeout") or 60.0,
        agent_poll_interval=get(y, "agent", "poll_interval") or 0.7,

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "json",
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("FLOWBRIDGE_CONFIG_PATH", "/app/configs/flowbridge.yaml")
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
