# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Analysis Models

Derived, never persisted. Recomputed from a Workflow plus its executions.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import Field

from flowbridge.engine.introspection import TriggerInfo
from flowbridge.engine.models import EngineModel, Workflow

NodeCategory = Literal["trigger", "ai_model", "tool", "data_source", "notification", "control_flow"]

WorkflowCategory = Literal[
    "ai_agent", "webhook_service", "data_processor", "automation_pipeline", "notification_system"
]


class NodeAnalysis(EngineModel):
    id: str
    name: str
    type: str
    category: NodeCategory
    description: str
    is_executable: bool = Field(alias="isExecutable")
    has_output: bool = Field(alias="hasOutput")
    connections: List[str] = Field(default_factory=list)


class WorkflowCapabilities(EngineModel):
    can_execute_manually: bool = Field(alias="canExecuteManually")
    has_webhook_trigger: bool = Field(alias="hasWebhookTrigger")
    has_scheduled_trigger: bool = Field(alias="hasScheduledTrigger")
    has_ai_components: bool = Field(alias="hasAIComponents")
    has_data_processing: bool = Field(alias="hasDataProcessing")
    has_notifications: bool = Field(alias="hasNotifications")
    has_external_apis: bool = Field(alias="hasExternalAPIs")
    requires_input: bool = Field(alias="requiresInput")


class ExecutiveControl(EngineModel):
    """A user-facing action whose availability follows from capabilities"""
    type: Literal["execute", "test", "monitor", "configure"]
    label: str
    description: str
    available: bool = True
    endpoint: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None


class ExecutionHistory(EngineModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    average_duration: float = Field(default=0.0, alias="averageDuration")  # ms
    last_execution: Optional[datetime] = Field(default=None, alias="lastExecution")


class Kpi(EngineModel):
    label: str
    value: Union[int, float, str]
    trend: Optional[Literal["up", "down", "stable"]] = None


class BusinessMetrics(EngineModel):
    description: str
    kpis: List[Kpi] = Field(default_factory=list)


class WorkflowInsight(EngineModel):
    workflow: Workflow
    category: WorkflowCategory
    capabilities: WorkflowCapabilities
    nodes: List[NodeAnalysis]
    controls: List[ExecutiveControl]
    triggers: List[TriggerInfo] = Field(default_factory=list)
    execution_history: ExecutionHistory = Field(alias="executionHistory")
    business_metrics: BusinessMetrics = Field(alias="businessMetrics")


class InsightsOverview(EngineModel):
    insights: List[WorkflowInsight] = Field(default_factory=list)
    total_workflows: int = Field(default=0, alias="totalWorkflows")
    active_workflows: int = Field(default=0, alias="activeWorkflows")
    total_executions: int = Field(default=0, alias="totalExecutions")
