# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Agent Chat Service

Sends a chat message to an AI-agent workflow through its chat (or webhook)
trigger and waits for the agent's text reply.

The reply is taken from the newest execution's run data when it shows up
before the deadline, otherwise from the webhook response body itself.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flowbridge.conversation.extraction import agent_reply_text, webhook_reply_text
from flowbridge.conversation.models import AgentChatMetadata, AgentChatRequest, AgentChatResponse
from flowbridge.core.config import Config
from flowbridge.core.errors import AgentNoResponseError, EngineError, NoTriggerFoundError, NotFoundError
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.client import EngineClient
from flowbridge.engine.introspection import TriggerInfo, analyze_triggers
from flowbridge.engine.models import Execution, Workflow
from flowbridge.engine.webhook import WebhookResolver, webhook_path

logger = get_service_logger("agent-chat")

CHAT_SOURCE = "flowbridge"


def select_chat_trigger(workflow: Workflow, trigger_node_id: Optional[str] = None) -> TriggerInfo:
    """
    Entry point for a chat message.

    Precedence: the requested node (if it is a chat or webhook trigger),
    the first chat trigger, the first plain webhook.
    """
    usable = [t for t in analyze_triggers(workflow) if t.type in ("chat", "webhook") and t.webhook_id]

    chosen = None
    if trigger_node_id:
        chosen = next((t for t in usable if t.node_id == trigger_node_id), None)
    chosen = (
        chosen
        or next((t for t in usable if t.type == "chat"), None)
        or next((t for t in usable if t.type == "webhook"), None)
    )
    if chosen is None:
        raise NoTriggerFoundError(workflow.id)
    return chosen


def build_chat_body(trigger: TriggerInfo, request: AgentChatRequest) -> Dict[str, Any]:
    """Message under the trigger's prompt field plus the common aliases"""
    message = request.message
    return {
        trigger.prompt_field or "chatInput": message,
        "message": message,
        "text": message,
        "input": message,
        "user": request.user_id,
        "timestamp": request.timestamp or datetime.now(timezone.utc).isoformat(),
        "source": CHAT_SOURCE,
        "sessionId": f"exec-{int(time.time() * 1000)}",
    }


class AgentChatService:
    """Chat bridge to AI-agent workflows"""

    def __init__(self, config: Config, engine: EngineClient, resolver: WebhookResolver):
        self.config = config
        self.engine = engine
        self.resolver = resolver

    async def send_chat(self, request: AgentChatRequest) -> AgentChatResponse:
        """
        Deliver a chat message and return the agent's reply.

        Raises:
            NotFoundError: the workflow does not exist
            NoTriggerFoundError: no chat or webhook trigger
            WebhookNotFoundError: every fallback URL answered 404
            AgentNoResponseError: no text reply before the deadline
        """
        workflow = await self._get_workflow(request.workflow_id)
        trigger = select_chat_trigger(workflow, request.trigger_node_id)
        node = next(n for n in workflow.nodes if n.id == trigger.node_id)

        logger.info(
            "Sending chat to agent",
            extra={"workflow_id": workflow.id, "trigger_node_id": trigger.node_id, "trigger_type": trigger.type}
        )
        outcome = await self.resolver.deliver(workflow, webhook_path(node), build_chat_body(trigger, request))

        reply, execution_id = await self._await_reply(workflow.id)
        reply = reply or webhook_reply_text(outcome.data)
        if not reply:
            raise AgentNoResponseError(
                int(self.config.agent_response_timeout * 1000),
                details={"execution_id": execution_id, "url": outcome.url}
            )

        return AgentChatResponse(
            response=reply,
            metadata=AgentChatMetadata(
                execution_id=execution_id,
                workflow_name=workflow.name,
                trigger_node_id=trigger.node_id,
                url=outcome.url,
                timestamp=datetime.now(timezone.utc),
            ),
            raw=outcome.data,
        )

    async def _get_workflow(self, workflow_id: str) -> Workflow:
        try:
            return await self.engine.get_workflow(workflow_id)
        except EngineError as e:
            if e.status == 404:
                raise NotFoundError("Workflow", workflow_id) from e
            raise

    async def _await_reply(self, workflow_id: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Poll the newest execution until it carries a reply.

        Stops early once that execution is no longer running. Returns
        (reply or None, newest execution id or None).
        """
        deadline = time.monotonic() + self.config.agent_response_timeout
        execution_id = None
        while time.monotonic() < deadline:
            latest = await self._latest_execution(workflow_id)
            if latest is not None:
                execution_id = latest.id
                reply = agent_reply_text(latest)
                if reply:
                    return reply, execution_id
                if latest.status != "running":
                    break
            await asyncio.sleep(self.config.agent_poll_interval)
        return None, execution_id

    async def _latest_execution(self, workflow_id: str) -> Optional[Execution]:
        try:
            executions = await self.engine.get_executions(workflow_id, limit=1)
            if not executions:
                return None
            return await self.engine.get_execution_detail(executions[0].id)
        except EngineError as e:
            logger.warning(f"Could not poll executions for {workflow_id}: {e.message}")
            return None
