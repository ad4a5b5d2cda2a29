# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
API tests for the automation routes

Services are replaced through FastAPI dependency overrides.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from flowbridge.analysis.analyzer import analyze_workflow
from flowbridge.analysis.models import InsightsOverview
from flowbridge.core.dependencies import (
    get_agent_chat_service,
    get_conversation_reconstructor,
    get_execution_controller,
    get_insight_service,
)
from flowbridge.conversation.models import AgentChatMetadata, AgentChatResponse
from flowbridge.conversation.reconstructor import ConversationReconstructor
from flowbridge.core.errors import AgentNoResponseError, EngineError
from flowbridge.engine.models import ExecutionResult
from flowbridge.main import create_app
from flowbridge.monitoring.aggregator import build_live_monitoring
from tests.factories import AGENT, CHAT_TRIGGER, make_execution, make_node, make_workflow, run_data_result


@pytest.fixture
def workflow():
    return make_workflow([
        make_node("c", CHAT_TRIGGER, name="Chat Trigger", webhook_id="abc"),
        make_node("a", AGENT, name="AI Agent"),
    ])


@pytest.fixture
def controller():
    controller = MagicMock()
    controller.execute = AsyncMock(return_value=ExecutionResult(success=True, execution_id="42", duration=12))
    controller.get_live_monitoring = AsyncMock(return_value=build_live_monitoring("wf1", []))
    controller.get_execution_logs = AsyncMock(return_value=make_execution(
        "42", result=run_data_result("AI Agent", {"response": "Hi there"})
    ))
    controller.stop_execution = AsyncMock(return_value=True)
    return controller


@pytest.fixture
def insight_service(workflow):
    service = MagicMock()
    insight = analyze_workflow(workflow, [])
    service.list_insights = AsyncMock(return_value=InsightsOverview(
        insights=[insight], total_workflows=1, active_workflows=1, total_executions=0
    ))
    service.get_insight = AsyncMock(return_value=insight)
    service.get_test_scenarios = AsyncMock(return_value=[])
    return service


@pytest.fixture
def agent_chat():
    service = MagicMock()
    service.send_chat = AsyncMock(return_value=AgentChatResponse(
        response="All systems nominal",
        metadata=AgentChatMetadata(
            execution_id="42",
            workflow_name="Test Workflow",
            trigger_node_id="c",
            url="https://eng/webhook/abc",
            timestamp=datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc),
        ),
        raw={"output": "All systems nominal"},
    ))
    return service


@pytest.fixture
def app(config, controller, insight_service, agent_chat):
    app = create_app(config)
    app.dependency_overrides[get_agent_chat_service] = lambda: agent_chat
    app.dependency_overrides[get_execution_controller] = lambda: controller
    app.dependency_overrides[get_insight_service] = lambda: insight_service
    app.dependency_overrides[get_conversation_reconstructor] = lambda: ConversationReconstructor()
    return app


@pytest.fixture
def client(app):
    """Test client without lifespan (no real engine clients)"""
    return TestClient(app)


class TestExecute:
    """POST /automation/execute"""

    def test_execute_returns_camel_case_result(self, client, controller):
        response = client.post("/automation/execute", json={"workflowId": "wf1", "executionType": "manual"})

        assert response.status_code == 200
        assert response.json()["executionId"] == "42"
        assert response.json()["success"] is True
        request = controller.execute.await_args.args[0]
        assert request.workflow_id == "wf1"
        assert request.execution_type == "manual"

    def test_execute_defaults_to_test(self, client, controller):
        client.post("/automation/execute", json={"workflowId": "wf1"})

        assert controller.execute.await_args.args[0].execution_type == "test"

    def test_execute_rejects_unknown_type(self, client):
        response = client.post("/automation/execute", json={"workflowId": "wf1", "executionType": "cron"})
        assert response.status_code == 422

    def test_execute_requires_workflow_id(self, client):
        response = client.post("/automation/execute", json={"workflowId": ""})
        assert response.status_code == 422


class TestInsights:
    """GET /automation/workflows..."""

    def test_list(self, client):
        response = client.get("/automation/workflows")

        assert response.status_code == 200
        body = response.json()
        assert body["totalWorkflows"] == 1
        assert body["insights"][0]["category"] == "ai_agent"

    def test_get_maps_engine_status(self, client, insight_service):
        insight_service.get_insight.side_effect = EngineError("Engine API error: 404 Not Found", status=404)

        response = client.get("/automation/workflows/missing")

        assert response.status_code == 404
        assert "404" in response.json()["detail"]

    def test_scenarios(self, client):
        response = client.get("/automation/workflows/wf1/scenarios")

        assert response.status_code == 200
        assert response.json() == []


class TestMonitoringAndExecutions:
    """Monitoring, execution detail, stop, AI results"""

    def test_monitoring(self, client):
        response = client.get("/automation/monitoring/wf1")

        assert response.status_code == 200
        assert response.json()["workflowId"] == "wf1"
        assert response.json()["isRunning"] is False

    def test_monitoring_engine_down(self, client, controller):
        controller.get_live_monitoring.side_effect = EngineError("Engine unreachable: refused")

        response = client.get("/automation/monitoring/wf1")

        assert response.status_code == 502

    def test_stop(self, client):
        response = client.post("/automation/executions/42/stop")

        assert response.json() == {"executionId": "42", "stopped": True}

    def test_ai_results(self, client):
        response = client.get("/automation/executions/42/ai-results")

        assert response.status_code == 200
        results = response.json()
        assert results[0]["content"] == "Hi there"
        assert results[0]["nodeName"] == "AI Agent"


class TestConversations:
    """POST /automation/conversations"""

    def test_reconstructs_in_start_order(self, client):
        response = client.post("/automation/conversations", json={
            "sessionId": "s1",
            "executions": [
                {"id": "2", "status": "success", "startedAt": "2025-06-15T10:00:05Z",
                 "result": {"input": "second", "output": "b"}},
                {"id": "1", "status": "success", "startedAt": "2025-06-15T10:00:00Z",
                 "stoppedAt": "2025-06-15T10:00:01Z", "result": {"input": "first", "output": "a"}},
            ],
        })

        assert response.status_code == 200
        body = response.json()
        assert [t["input"] for t in body["turns"]] == ["first", "second"]
        assert body["messageCount"] == 2
        assert body["durationDisplay"] == "5s"


class TestAgentChat:
    """POST /automation/ai-agent/chat"""

    def test_returns_reply(self, client, agent_chat):
        response = client.post("/automation/ai-agent/chat", json={"workflowId": "wf1", "message": "Status?"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "completed"
        assert body["response"] == "All systems nominal"
        assert body["metadata"]["executionId"] == "42"
        assert body["metadata"]["workflowName"] == "Test Workflow"
        request = agent_chat.send_chat.await_args.args[0]
        assert request.workflow_id == "wf1"
        assert request.user_id == "executive-dashboard"

    def test_no_reply_is_gateway_timeout(self, client, agent_chat):
        agent_chat.send_chat.side_effect = AgentNoResponseError(60000)

        response = client.post("/automation/ai-agent/chat", json={"workflowId": "wf1", "message": "Status?"})

        assert response.status_code == 504
        assert "did not respond within 60000ms" in response.json()["detail"]

    def test_requires_message(self, client):
        response = client.post("/automation/ai-agent/chat", json={"workflowId": "wf1", "message": ""})

        assert response.status_code == 422


class TestHealth:
    """GET /health"""

    def test_reports_engine_health(self, app):
        engine = MagicMock()
        engine.health_check = AsyncMock(return_value={"status": "unhealthy", "error": "refused"})
        app.state.engine_client = engine

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["engine"]["status"] == "unhealthy"
