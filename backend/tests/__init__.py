# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Suite for FlowBridge Backend

Structure:
- unit/: Unit tests for engine, analysis, monitoring, conversation and services
- test_api.py: API endpoint tests with overridden dependencies
"""
