# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for FlowBridge modules.

Tests each module in isolation; HTTP is faked with httpx.MockTransport.
"""
