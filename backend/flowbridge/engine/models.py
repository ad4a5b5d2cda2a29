# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Engine Models

Pydantic models for the automation engine's workflows and executions,
plus the request/result shapes used by the execution controller.

Engine JSON is camelCase; fields are snake_case with aliases so that
both spellings are accepted and responses serialize back to camelCase.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

ExecutionType = Literal["manual", "webhook", "test"]


class EngineModel(BaseModel):
    """Base for engine-shaped models (alias-aware, tolerant of extra keys)"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class Node(EngineModel):
    """One step in a workflow graph"""
    id: str
    name: str
    type: str
    webhook_id: Optional[str] = Field(default=None, alias="webhookId")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @property
    def type_suffix(self) -> str:
        """Last dotted segment of the type, e.g. 'chatTrigger'"""
        return self.type.rsplit(".", 1)[-1]

    @property
    def is_trigger_candidate(self) -> bool:
        return bool(self.webhook_id)


class Workflow(EngineModel):
    """Workflow snapshot as returned by the engine"""
    id: str
    name: str
    active: bool = False
    tags: List[Any] = Field(default_factory=list)
    nodes: List[Node] = Field(default_factory=list)
    connections: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class Execution(EngineModel):
    """
    One run of a workflow.

    `result` holds the raw engine document when it carries run data
    (`result["data"]["resultData"]["runData"]`); it is never validated.
    """
    id: str
    workflow_id: Optional[str] = Field(default=None, alias="workflowId")
    status: str = "unknown"
    mode: Optional[str] = None
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    stopped_at: Optional[datetime] = Field(default=None, alias="stoppedAt")
    progress: Optional[int] = None
    current_node: Optional[str] = Field(default=None, alias="currentNode")
    result: Optional[Any] = None

    @classmethod
    def from_engine(cls, payload: Dict[str, Any]) -> "Execution":
        """Build from an engine execution document, keeping run data as `result`"""
        execution = cls.model_validate(payload)
        if execution.result is None and isinstance(payload.get("data"), dict):
            execution.result = payload
        return execution

    @property
    def duration_ms(self) -> Optional[int]:
        """Wall time in ms, None unless both timestamps are set"""
        if self.started_at is None or self.stopped_at is None:
            return None
        try:
            return int((self.stopped_at - self.started_at).total_seconds() * 1000)
        except TypeError:
            # naive/aware mix
            return None


# =============================================================================
# EXECUTION REQUEST / RESULT
# =============================================================================

class ExecutionRequest(EngineModel):
    """Request to run a workflow"""
    workflow_id: str = Field(alias="workflowId", min_length=1)
    payload: Optional[Dict[str, Any]] = None
    execution_type: ExecutionType = Field(default="test", alias="executionType")
    trigger_node_id: Optional[str] = Field(default=None, alias="triggerNodeId")


class TriggerOutcome(EngineModel):
    """What a single trigger path (manual or webhook) produced"""
    execution_id: Optional[str] = Field(default=None, alias="executionId")
    data: Optional[Any] = None
    trigger_node_id: Optional[str] = Field(default=None, alias="triggerNodeId")
    url: Optional[str] = None
    attempted_urls: List[str] = Field(default_factory=list, alias="attemptedUrls")


class ExecutionResult(EngineModel):
    """Normalized result returned by the execution controller"""
    success: bool
    execution_id: Optional[str] = Field(default=None, alias="executionId")
    data: Optional[Any] = None
    error: Optional[str] = None
    error_type: Optional[str] = Field(default=None, alias="errorType")
    duration: int = 0  # ms


class TestScenario(EngineModel):
    """Canned payload for exercising a workflow"""
    __test__ = False  # not a pytest class

    name: str
    description: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    preferred_trigger_type: Optional[Literal["chat", "webhook", "manual"]] = Field(
        default=None, alias="preferredTriggerType"
    )
