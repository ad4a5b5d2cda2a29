# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for InsightService
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from flowbridge.core.errors import EngineError, NotFoundError
from flowbridge.services.insight_service import InsightService
from tests.factories import AGENT, CHAT_TRIGGER, WEBHOOK, make_execution, make_node, make_workflow


@pytest.fixture
def workflows():
    return [
        make_workflow([make_node("c", CHAT_TRIGGER, webhook_id="c"), make_node("a", AGENT)], workflow_id="wf1"),
        make_workflow([make_node("w", WEBHOOK, webhook_id="w")], workflow_id="wf2", active=False),
    ]


@pytest.fixture
def mock_engine(workflows):
    engine = MagicMock()
    engine.get_workflows = AsyncMock(return_value=workflows)
    engine.get_workflow = AsyncMock(return_value=workflows[0])
    engine.get_executions = AsyncMock(return_value=[
        make_execution("3", "success", workflow_id="wf1"),
        make_execution("2", "error", workflow_id="wf1"),
        make_execution("1", "success", workflow_id="wf2"),
    ])
    return engine


@pytest.fixture
def service(config, mock_engine):
    return InsightService(config, mock_engine)


class TestListInsights:
    """Test list_insights"""

    @pytest.mark.asyncio
    async def test_builds_insight_per_workflow(self, service, mock_engine):
        overview = await service.list_insights()

        assert overview.total_workflows == 2
        assert overview.active_workflows == 1
        assert overview.total_executions == 3
        assert [i.category for i in overview.insights] == ["ai_agent", "webhook_service"]
        assert overview.insights[0].execution_history.total == 2
        assert overview.insights[1].execution_history.total == 1
        mock_engine.get_executions.assert_awaited_once_with(limit=200)

    @pytest.mark.asyncio
    async def test_execution_failure_is_tolerated(self, service, mock_engine):
        mock_engine.get_executions.side_effect = EngineError("timeout")

        overview = await service.list_insights()

        assert overview.total_workflows == 2
        assert overview.total_executions == 0
        assert overview.insights[0].execution_history.total == 0

    @pytest.mark.asyncio
    async def test_workflow_failure_propagates(self, service, mock_engine):
        mock_engine.get_workflows.side_effect = EngineError("unauthorized", status=401)

        with pytest.raises(EngineError):
            await service.list_insights()


class TestGetInsight:
    """Test get_insight and get_test_scenarios"""

    @pytest.mark.asyncio
    async def test_get_insight(self, service, mock_engine):
        insight = await service.get_insight("wf1")

        assert insight.workflow.id == "wf1"
        assert insight.execution_history.total == 3
        mock_engine.get_executions.assert_awaited_once_with("wf1", limit=200)

    @pytest.mark.asyncio
    async def test_get_insight_missing_workflow(self, service, mock_engine):
        mock_engine.get_workflow.side_effect = EngineError("Not Found", status=404)

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_insight("nope")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Workflow not found: nope"

    @pytest.mark.asyncio
    async def test_other_engine_errors_propagate(self, service, mock_engine):
        mock_engine.get_workflow.side_effect = EngineError("Engine API error: 401", status=401)

        with pytest.raises(EngineError):
            await service.get_test_scenarios("wf1")

    @pytest.mark.asyncio
    async def test_get_test_scenarios(self, service):
        scenarios = await service.get_test_scenarios("wf1")

        assert [s.name for s in scenarios] == ["Chat Test"]
