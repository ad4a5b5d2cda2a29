# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures for FlowBridge tests
"""

from datetime import datetime, timezone

import pytest

from flowbridge.core.config import Config


@pytest.fixture
def config():
    """Config with explicit live/test webhook roots"""
    return Config(
        engine_base_url="https://eng",
        api_key="test-key",
        webhook_live_url="https://eng/webhook",
        webhook_test_url="https://eng/webhook-test",
    )


@pytest.fixture
def now():
    return datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
