# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Automation API Routes

Handles workflow automation:
- Execute workflows (manual, webhook, test)
- Workflow insights and test scenarios
- Live monitoring, execution detail, stop
- AI results, conversation replay and agent chat
"""

from typing import Any, Dict, List, NoReturn
from fastapi import APIRouter, Depends, HTTPException

from flowbridge.analysis.models import InsightsOverview, WorkflowInsight
from flowbridge.conversation.extraction import extract_ai_results
from flowbridge.conversation.models import (
    AgentChatRequest,
    AgentChatResponse,
    AIResult,
    Conversation,
    ConversationRequest,
)
from flowbridge.conversation.reconstructor import ConversationReconstructor
from flowbridge.core.dependencies import (
    get_agent_chat_service,
    get_conversation_reconstructor,
    get_execution_controller,
    get_insight_service,
)
from flowbridge.core.errors import FlowBridgeError, sanitize_error_for_user
from flowbridge.core.logging import get_api_logger
from flowbridge.engine.models import Execution, ExecutionRequest, ExecutionResult, TestScenario
from flowbridge.monitoring.models import LiveMonitoring
from flowbridge.services.agent_chat import AgentChatService
from flowbridge.services.execution_controller import ExecutionController
from flowbridge.services.insight_service import InsightService

router = APIRouter(prefix="/automation", tags=["automation"])
logger = get_api_logger()


def _http_error(error: FlowBridgeError) -> NoReturn:
    logger.warning(f"Request failed: {error.message}", extra={"status_code": error.status_code})
    raise HTTPException(status_code=error.status_code, detail=sanitize_error_for_user(error, include_type=False)) from error


@router.post("/execute", response_model=ExecutionResult)
async def execute_workflow(
    request: ExecutionRequest,
    controller: ExecutionController = Depends(get_execution_controller)
) -> ExecutionResult:
    """Execute a workflow; failures are reported in the result body"""
    return await controller.execute(request)


# Insights
@router.get("/workflows", response_model=InsightsOverview)
async def list_workflow_insights(
    service: InsightService = Depends(get_insight_service)
) -> InsightsOverview:
    """Insights for all workflows"""
    try:
        return await service.list_insights()
    except FlowBridgeError as e:
        _http_error(e)


@router.get("/workflows/{workflow_id}", response_model=WorkflowInsight)
async def get_workflow_insight(
    workflow_id: str,
    service: InsightService = Depends(get_insight_service)
) -> WorkflowInsight:
    """Insight for one workflow"""
    try:
        return await service.get_insight(workflow_id)
    except FlowBridgeError as e:
        _http_error(e)


@router.get("/workflows/{workflow_id}/scenarios", response_model=List[TestScenario])
async def get_test_scenarios(
    workflow_id: str,
    service: InsightService = Depends(get_insight_service)
) -> List[TestScenario]:
    """Test scenarios for a workflow, in presentation order"""
    try:
        return await service.get_test_scenarios(workflow_id)
    except FlowBridgeError as e:
        _http_error(e)


# Monitoring & executions
@router.get("/monitoring/{workflow_id}", response_model=LiveMonitoring)
async def get_live_monitoring(
    workflow_id: str,
    controller: ExecutionController = Depends(get_execution_controller)
) -> LiveMonitoring:
    """Current monitoring snapshot for a workflow"""
    try:
        return await controller.get_live_monitoring(workflow_id)
    except FlowBridgeError as e:
        _http_error(e)


@router.get("/executions/{execution_id}", response_model=Execution)
async def get_execution(
    execution_id: str,
    controller: ExecutionController = Depends(get_execution_controller)
) -> Execution:
    """Execution with its result data"""
    try:
        return await controller.get_execution_logs(execution_id)
    except FlowBridgeError as e:
        _http_error(e)


@router.post("/executions/{execution_id}/stop")
async def stop_execution(
    execution_id: str,
    controller: ExecutionController = Depends(get_execution_controller)
) -> Dict[str, Any]:
    """Request a stop; the effect shows on the next status fetch"""
    stopped = await controller.stop_execution(execution_id)
    return {"executionId": execution_id, "stopped": stopped}


# AI results & conversations
@router.get("/executions/{execution_id}/ai-results", response_model=List[AIResult])
async def get_ai_results(
    execution_id: str,
    controller: ExecutionController = Depends(get_execution_controller)
) -> List[AIResult]:
    """Text responses produced by the execution's nodes"""
    try:
        execution = await controller.get_execution_logs(execution_id)
    except FlowBridgeError as e:
        _http_error(e)
    return extract_ai_results(execution)


@router.post("/conversations", response_model=Conversation)
async def reconstruct_conversation(
    request: ConversationRequest,
    reconstructor: ConversationReconstructor = Depends(get_conversation_reconstructor)
) -> Conversation:
    """Replay a session's executions as ordered turns"""
    return await reconstructor.build_conversation(request.session_id, request.executions)


@router.post("/ai-agent/chat", response_model=AgentChatResponse)
async def chat_with_agent(
    request: AgentChatRequest,
    service: AgentChatService = Depends(get_agent_chat_service)
) -> AgentChatResponse:
    """Send a chat message to an AI-agent workflow and return its reply"""
    try:
        return await service.send_chat(request)
    except FlowBridgeError as e:
        _http_error(e)
