# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Number and duration formatting shared by analysis, monitoring and
conversation views
"""

import math


def round_half_up(value: float) -> int:
    """Round to nearest integer, .5 away from zero"""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def percent(part: int, total: int) -> int:
    """Whole-number percentage; 0 when total is 0"""
    if total <= 0:
        return 0
    return round_half_up(part / total * 100)


def format_duration(ms: float) -> str:
    """Sub-second in ms, sub-minute in whole seconds, else whole minutes"""
    if ms < 1000:
        return f"{round_half_up(ms)}ms"
    if ms < 60000:
        return f"{round_half_up(ms / 1000)}s"
    return f"{round_half_up(ms / 60000)}min"
