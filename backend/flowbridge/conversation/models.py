# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Conversation Models
"""

from datetime import datetime
from typing import Any, List, Literal, Optional, Union
from pydantic import Field

from flowbridge.engine.models import EngineModel, Execution


class ConversationTurn(EngineModel):
    """One (input, output) pair recovered from a single execution"""
    execution_id: str = Field(alias="executionId")
    input: str
    output: str
    timestamp: Optional[datetime] = None
    status: str


class Conversation(EngineModel):
    session_id: str = Field(alias="sessionId")
    turns: List[ConversationTurn] = Field(default_factory=list)
    message_count: int = Field(default=0, alias="messageCount")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")
    duration: int = 0  # ms
    duration_display: str = Field(default="0ms", alias="durationDisplay")
    status: str = "success"


class ConversationRequest(EngineModel):
    """Executions of one logical session, in any order"""
    session_id: str = Field(alias="sessionId")
    executions: List[Execution] = Field(default_factory=list)


class AIResult(EngineModel):
    """A text response emitted by some node of an execution"""
    id: str
    node_id: str = Field(alias="nodeId")
    node_name: str = Field(alias="nodeName")
    type: str = "text_response"
    content: str
    timestamp: Optional[datetime] = None
    model: str = "unknown"
    confidence: float = 0.8
    execution_time: Union[int, float] = Field(default=0, alias="executionTime")
    tokens: Optional[int] = None


# =============================================================================
# AGENT CHAT
# =============================================================================

class AgentChatRequest(EngineModel):
    """A chat message for an AI-agent workflow"""
    workflow_id: str = Field(alias="workflowId", min_length=1)
    message: str = Field(min_length=1)
    user_id: str = Field(default="executive-dashboard", alias="userId")
    timestamp: Optional[str] = None
    trigger_node_id: Optional[str] = Field(default=None, alias="triggerNodeId")


class AgentChatMetadata(EngineModel):
    execution_id: Optional[str] = Field(default=None, alias="executionId")
    workflow_name: str = Field(alias="workflowName")
    trigger_node_id: str = Field(alias="triggerNodeId")
    url: Optional[str] = None
    timestamp: datetime


class AgentChatResponse(EngineModel):
    success: bool = True
    status: Literal["completed"] = "completed"
    response: str
    metadata: AgentChatMetadata
    raw: Optional[Any] = None
