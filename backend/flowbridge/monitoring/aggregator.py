# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Live Monitoring Aggregator

Turns a most-recent-first execution list into a monitoring snapshot.
Pure: no I/O, never raises on missing per-execution fields.
"""

from datetime import datetime
from typing import Optional, Sequence

from flowbridge.engine.models import Execution
from flowbridge.monitoring.models import CurrentExecution, LiveMonitoring, MonitoringMetrics
from flowbridge.utils.formatting import percent, round_half_up

DEFAULT_PROGRESS_ESTIMATE = 50
DEFAULT_RECENT_LIMIT = 10


def estimate_progress(execution: Execution, estimate: int = DEFAULT_PROGRESS_ESTIMATE) -> int:
    """Engine-reported progress when present (clamped to 0..100), else the fixed estimate"""
    if execution.progress is None:
        return estimate
    return max(0, min(100, execution.progress))


def is_today(execution: Execution, now: datetime) -> bool:
    """Calendar-day match in `now`'s timezone; executions without a start never match"""
    if execution.started_at is None:
        return False
    started = execution.started_at
    if started.tzinfo is not None and now.tzinfo is not None:
        started = started.astimezone(now.tzinfo)
    return started.date() == now.date()


def average_response_time(executions: Sequence[Execution]) -> int:
    """Mean ms over executions with both timestamps; 0 if there are none"""
    durations = [e.duration_ms for e in executions if e.duration_ms is not None]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def build_live_monitoring(
    workflow_id: str,
    executions: Sequence[Execution],
    now: Optional[datetime] = None,
    progress_estimate: int = DEFAULT_PROGRESS_ESTIMATE,
    recent_limit: int = DEFAULT_RECENT_LIMIT
) -> LiveMonitoring:
    """
    Build a monitoring snapshot.

    Args:
        workflow_id: Workflow the executions belong to
        executions: Engine executions, most recent first
        now: Reference time for "today" (defaults to local time)
        progress_estimate: Progress reported when the engine gives none
        recent_limit: Size of the recent-executions window

    Returns:
        LiveMonitoring snapshot
    """
    now = now or datetime.now().astimezone()

    # First running execution is authoritative
    running = next((e for e in executions if e.status == "running"), None)
    current = None
    if running is not None:
        current = CurrentExecution(
            id=running.id,
            started_at=running.started_at,
            current_node=running.current_node,
            progress=estimate_progress(running, progress_estimate),
        )

    today = [e for e in executions if is_today(e, now)]
    successful_today = sum(1 for e in today if e.status == "success")

    return LiveMonitoring(
        workflow_id=workflow_id,
        is_running=running is not None,
        current_execution=current,
        recent_executions=list(executions[:recent_limit]),
        metrics=MonitoringMetrics(
            executions_today=len(today),
            success_rate=percent(successful_today, len(today)),
            average_response_time=average_response_time(executions),
            error_count=sum(1 for e in today if e.status == "error"),
        ),
    )
