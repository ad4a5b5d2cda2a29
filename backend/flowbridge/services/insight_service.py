# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Insight Service

Fetches workflows and their executions from the engine and runs them
through the workflow analyzer.
"""

import asyncio
from collections import defaultdict
from typing import Dict, List

from flowbridge.analysis.analyzer import analyze_workflow, generate_test_scenarios
from flowbridge.analysis.models import InsightsOverview, WorkflowInsight
from flowbridge.core.config import Config
from flowbridge.core.errors import EngineError, NotFoundError
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.client import EngineClient
from flowbridge.engine.models import Execution, TestScenario, Workflow

logger = get_service_logger("insights")


class InsightService:
    """Workflow insights backed by the engine API"""

    def __init__(self, config: Config, engine: EngineClient):
        self.config = config
        self.engine = engine

    async def list_insights(self) -> InsightsOverview:
        """
        Insight for every workflow plus overview counts.

        Workflows and executions are fetched concurrently; if only the
        executions call fails, insights are built with empty histories.
        """
        workflows, executions = await asyncio.gather(
            self.engine.get_workflows(),
            self.engine.get_executions(limit=self.config.insight_execution_limit),
            return_exceptions=True,
        )
        if isinstance(workflows, BaseException):
            raise workflows
        if isinstance(executions, BaseException):
            if not isinstance(executions, EngineError):
                raise executions
            logger.warning(f"Could not fetch executions for insights: {executions.message}")
            executions = []

        by_workflow: Dict[str, List[Execution]] = defaultdict(list)
        for execution in executions:
            if execution.workflow_id:
                by_workflow[execution.workflow_id].append(execution)

        insights = [analyze_workflow(w, by_workflow.get(w.id, [])) for w in workflows]
        logger.info(f"Built insights for {len(insights)} workflows")

        return InsightsOverview(
            insights=insights,
            total_workflows=len(workflows),
            active_workflows=sum(1 for w in workflows if w.active),
            total_executions=len(executions),
        )

    async def _get_workflow(self, workflow_id: str) -> Workflow:
        try:
            return await self.engine.get_workflow(workflow_id)
        except EngineError as e:
            if e.status == 404:
                raise NotFoundError("Workflow", workflow_id) from e
            raise

    async def get_insight(self, workflow_id: str) -> WorkflowInsight:
        workflow, executions = await asyncio.gather(
            self._get_workflow(workflow_id),
            self.engine.get_executions(workflow_id, limit=self.config.insight_execution_limit),
            return_exceptions=True,
        )
        if isinstance(workflow, BaseException):
            raise workflow
        if isinstance(executions, BaseException):
            if not isinstance(executions, EngineError):
                raise executions
            logger.warning(f"Could not fetch executions for {workflow_id}: {executions.message}")
            executions = []

        return analyze_workflow(workflow, executions)

    async def get_test_scenarios(self, workflow_id: str) -> List[TestScenario]:
        workflow = await self._get_workflow(workflow_id)
        return generate_test_scenarios(workflow)
