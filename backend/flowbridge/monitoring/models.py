# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Live Monitoring Models

One snapshot per poll; the next poll replaces it wholesale.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from flowbridge.engine.models import EngineModel, Execution


class CurrentExecution(EngineModel):
    id: str
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    current_node: Optional[str] = Field(default=None, alias="currentNode")
    progress: int


class MonitoringMetrics(EngineModel):
    executions_today: int = Field(default=0, alias="executionsToday")
    success_rate: int = Field(default=0, alias="successRate")  # 0..100
    average_response_time: int = Field(default=0, alias="averageResponseTime")  # ms
    error_count: int = Field(default=0, alias="errorCount")


class LiveMonitoring(EngineModel):
    workflow_id: str = Field(alias="workflowId")
    is_running: bool = Field(alias="isRunning")
    current_execution: Optional[CurrentExecution] = Field(default=None, alias="currentExecution")
    recent_executions: List[Execution] = Field(default_factory=list, alias="recentExecutions")
    metrics: MonitoringMetrics = Field(default_factory=MonitoringMetrics)
