# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for AgentChatService

Engine client and webhook resolver are mocked.
"""

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from flowbridge.conversation.models import AgentChatRequest
from flowbridge.core.errors import AgentNoResponseError, EngineError, NoTriggerFoundError, NotFoundError
from flowbridge.engine.models import Execution, TriggerOutcome
from flowbridge.services.agent_chat import AgentChatService, build_chat_body, select_chat_trigger
from tests.factories import (
    AGENT,
    CHAT_TRIGGER,
    MANUAL_TRIGGER,
    WEBHOOK,
    make_execution,
    make_node,
    make_workflow,
    run_data_result,
)


@pytest.fixture
def workflow():
    return make_workflow([
        make_node("chat", CHAT_TRIGGER, name="Chat Trigger", webhook_id="abc123"),
        make_node("agent", AGENT, name="AI Agent"),
    ])


@pytest.fixture
def mock_engine(workflow):
    engine = MagicMock()
    engine.get_workflow = AsyncMock(return_value=workflow)
    engine.get_executions = AsyncMock(return_value=[Execution(id="42", status="success")])
    engine.get_execution_detail = AsyncMock(return_value=make_execution(
        "42", result=run_data_result("AI Agent", {"output": "Hello from the agent"})
    ))
    return engine


@pytest.fixture
def mock_resolver():
    resolver = MagicMock()
    resolver.deliver = AsyncMock(return_value=TriggerOutcome(data={}, url="https://eng/webhook/abc123"))
    return resolver


@pytest.fixture
def chat_config(config):
    """Short deadline and poll interval"""
    return replace(config, agent_response_timeout=0.05, agent_poll_interval=0.01)


@pytest.fixture
def service(chat_config, mock_engine, mock_resolver):
    return AgentChatService(chat_config, mock_engine, mock_resolver)


class TestSelectChatTrigger:
    """Test trigger precedence for chat messages"""

    @pytest.fixture
    def mixed_workflow(self):
        return make_workflow([
            make_node("manual", MANUAL_TRIGGER),
            make_node("hook", WEBHOOK, webhook_id="hook-id"),
            make_node("chat", CHAT_TRIGGER, webhook_id="chat-id"),
        ])

    def test_requested_trigger_wins(self, mixed_workflow):
        assert select_chat_trigger(mixed_workflow, "hook").node_id == "hook"

    def test_chat_preferred(self, mixed_workflow):
        assert select_chat_trigger(mixed_workflow).node_id == "chat"

    def test_requested_manual_trigger_is_ignored(self, mixed_workflow):
        assert select_chat_trigger(mixed_workflow, "manual").node_id == "chat"

    def test_webhook_when_no_chat(self):
        workflow = make_workflow([make_node("hook", WEBHOOK, webhook_id="hook-id")])

        assert select_chat_trigger(workflow).node_id == "hook"

    def test_no_usable_trigger_raises(self):
        workflow = make_workflow([make_node("manual", MANUAL_TRIGGER)])

        with pytest.raises(NoTriggerFoundError):
            select_chat_trigger(workflow)


class TestBuildChatBody:
    """Test outgoing chat body"""

    def test_uses_prompt_field(self):
        workflow = make_workflow([make_node("chat", CHAT_TRIGGER, webhook_id="c", promptField="question")])
        request = AgentChatRequest(workflow_id="wf1", message="Status?", timestamp="2025-06-15T12:00:00Z")

        body = build_chat_body(select_chat_trigger(workflow), request)

        assert body["question"] == "Status?"
        assert body["message"] == body["text"] == body["input"] == "Status?"
        assert body["user"] == "executive-dashboard"
        assert body["timestamp"] == "2025-06-15T12:00:00Z"
        assert body["source"] == "flowbridge"
        assert body["sessionId"].startswith("exec-")

    def test_default_prompt_field(self, workflow):
        body = build_chat_body(select_chat_trigger(workflow), AgentChatRequest(workflow_id="wf1", message="Hi"))

        assert body["chatInput"] == "Hi"
        assert body["timestamp"]


class TestSendChat:
    """Test send_chat"""

    @pytest.mark.asyncio
    async def test_reply_from_execution(self, service, mock_engine, mock_resolver):
        response = await service.send_chat(AgentChatRequest(workflow_id="wf1", message="Hallo", user_id="ceo"))

        assert response.success is True
        assert response.status == "completed"
        assert response.response == "Hello from the agent"
        assert response.metadata.execution_id == "42"
        assert response.metadata.workflow_name == "Test Workflow"
        assert response.metadata.trigger_node_id == "chat"
        assert response.metadata.url == "https://eng/webhook/abc123"

        workflow, path, body = mock_resolver.deliver.await_args.args
        assert workflow.id == "wf1"
        assert path == "abc123"
        assert body["chatInput"] == "Hallo"
        assert body["user"] == "ceo"
        mock_engine.get_execution_detail.assert_awaited_once_with("42")

    @pytest.mark.asyncio
    async def test_plain_webhook_uses_path_parameter(self, service, mock_engine, mock_resolver):
        mock_engine.get_workflow.return_value = make_workflow([
            make_node("hook", WEBHOOK, webhook_id="hook-id", path="support"),
        ])

        await service.send_chat(AgentChatRequest(workflow_id="wf1", message="Hallo"))

        assert mock_resolver.deliver.await_args.args[1] == "support"

    @pytest.mark.asyncio
    async def test_finished_execution_falls_back_to_webhook_body(self, service, mock_engine, mock_resolver):
        """A finished execution without a reply stops polling; the webhook body is used"""
        mock_engine.get_execution_detail.return_value = make_execution("42", "success")
        mock_resolver.deliver.return_value = TriggerOutcome(data=[{"output": "From webhook"}], url="u")

        response = await service.send_chat(AgentChatRequest(workflow_id="wf1", message="Hallo"))

        assert response.response == "From webhook"
        assert response.raw == [{"output": "From webhook"}]
        assert response.metadata.execution_id == "42"
        mock_engine.get_executions.assert_awaited_once_with("wf1", limit=1)

    @pytest.mark.asyncio
    async def test_no_reply_raises(self, service, mock_engine):
        mock_engine.get_execution_detail.return_value = make_execution("42", "running")

        with pytest.raises(AgentNoResponseError) as exc_info:
            await service.send_chat(AgentChatRequest(workflow_id="wf1", message="Hallo"))

        assert exc_info.value.status_code == 504
        assert exc_info.value.wait_ms == 50
        assert "did not respond within 50ms" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_poll_failures_are_tolerated(self, service, mock_engine, mock_resolver):
        mock_engine.get_executions.side_effect = EngineError("down", status=503)
        mock_resolver.deliver.return_value = TriggerOutcome(data={"response": "ok"}, url="u")

        response = await service.send_chat(AgentChatRequest(workflow_id="wf1", message="Hallo"))

        assert response.response == "ok"
        assert response.metadata.execution_id is None

    @pytest.mark.asyncio
    async def test_missing_workflow(self, service, mock_engine, mock_resolver):
        mock_engine.get_workflow.side_effect = EngineError("Not Found", status=404)

        with pytest.raises(NotFoundError):
            await service.send_chat(AgentChatRequest(workflow_id="nope", message="Hallo"))
        mock_resolver.deliver.assert_not_awaited()
