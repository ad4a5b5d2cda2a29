# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Controller

Dispatches execution requests to the engine's manual trigger or to the
webhook resolver, and exposes the monitoring / log / stop operations.
"""

import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from flowbridge.analysis.analyzer import generate_test_scenarios
from flowbridge.core.config import Config
from flowbridge.core.errors import ExecutionError, FlowBridgeError
from flowbridge.core.logging import get_service_logger, log_event
from flowbridge.engine.client import EngineClient
from flowbridge.engine.models import (
    Execution,
    ExecutionRequest,
    ExecutionResult,
    TestScenario,
    TriggerOutcome,
    Workflow,
)
from flowbridge.engine.webhook import DEFAULT_PAYLOAD, WebhookResolver
from flowbridge.monitoring.aggregator import build_live_monitoring
from flowbridge.monitoring.models import LiveMonitoring

logger = get_service_logger("execution")


def _message(error: Exception) -> str:
    return error.message if isinstance(error, FlowBridgeError) else str(error)


class ExecutionController:
    """
    Runs workflows and reports on their executions.

    Responsibilities:
    - manual / webhook / test execution with timing
    - live monitoring snapshots
    - execution detail and stop requests
    """

    def __init__(self, config: Config, engine: EngineClient, resolver: WebhookResolver):
        self.config = config
        self.engine = engine
        self.resolver = resolver

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """
        Execute a workflow and return a normalized result.

        Failures are reported in the result (never raised); `duration` is
        the wall-clock time of the attempt in ms either way.
        """
        logger.info(
            f"Executing workflow {request.workflow_id}",
            extra={"workflow_id": request.workflow_id, "execution_type": request.execution_type}
        )
        start = time.perf_counter()

        try:
            if request.execution_type == "manual":
                outcome = await self.run_manual(request.workflow_id, request.payload)
            elif request.execution_type == "webhook":
                outcome = await self.run_webhook(request.workflow_id, request.payload, request.trigger_node_id)
            else:
                outcome = await self.run_test(request.workflow_id, request.payload, request.trigger_node_id)
        except (FlowBridgeError, PydanticValidationError) as e:
            duration = self._elapsed_ms(start)
            logger.error(
                f"Execution failed for workflow {request.workflow_id}: {_message(e)}",
                extra={"workflow_id": request.workflow_id, "duration_ms": duration}
            )
            return ExecutionResult(
                success=False,
                error=_message(e),
                error_type=type(e).__name__,
                duration=duration,
            )

        duration = self._elapsed_ms(start)
        log_event(
            logger,
            "workflow_executed",
            workflow_id=request.workflow_id,
            execution_id=outcome.execution_id,
            execution_type=request.execution_type,
            duration_ms=duration,
        )
        return ExecutionResult(
            success=True,
            execution_id=outcome.execution_id,
            data=outcome.data,
            duration=duration,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)

    # =========================================================================
    # TRIGGER PATHS
    # =========================================================================

    async def run_manual(self, workflow_id: str, payload: Optional[Dict[str, Any]] = None) -> TriggerOutcome:
        """Engine manual trigger; errors propagate"""
        return await self.engine.execute_manual(workflow_id, payload)

    async def run_webhook(
        self,
        workflow_id: str,
        payload: Optional[Dict[str, Any]] = None,
        trigger_node_id: Optional[str] = None
    ) -> TriggerOutcome:
        """Webhook trigger with URL fallback; errors propagate"""
        workflow = await self.engine.get_workflow(workflow_id)
        return await self.resolver.execute(workflow, payload, trigger_node_id)

    async def run_test(
        self,
        workflow_id: str,
        payload: Optional[Dict[str, Any]] = None,
        trigger_node_id: Optional[str] = None
    ) -> TriggerOutcome:
        """
        Webhook first, then manual.

        Without a payload, the first generated test scenario's payload is used,
        or the default test payload if the workflow could not be fetched.

        Raises:
            ExecutionError: both paths failed (message names both causes)
        """
        test_payload = payload
        try:
            workflow = await self.engine.get_workflow(workflow_id)
            if test_payload is None:
                test_payload = self.generate_test_data(workflow)[0].payload
            return await self.resolver.execute(workflow, test_payload, trigger_node_id)
        except (FlowBridgeError, PydanticValidationError) as e:
            webhook_error = _message(e)
            logger.warning(
                f"Webhook test failed for {workflow_id}, trying manual: {webhook_error}",
                extra={"workflow_id": workflow_id}
            )

        try:
            return await self.engine.execute_manual(
                workflow_id, test_payload if test_payload is not None else dict(DEFAULT_PAYLOAD)
            )
        except (FlowBridgeError, PydanticValidationError) as e:
            raise ExecutionError(
                f"Execution failed. Webhook: {webhook_error}. Manual: {_message(e)}",
                workflow_id=workflow_id,
                details={"webhook_error": webhook_error, "manual_error": _message(e)}
            ) from e

    def generate_test_data(self, workflow: Workflow) -> List[TestScenario]:
        return generate_test_scenarios(workflow)

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    async def get_live_monitoring(self, workflow_id: str) -> LiveMonitoring:
        executions = await self.engine.get_executions(workflow_id, limit=self.config.monitoring_execution_limit)
        return build_live_monitoring(
            workflow_id,
            executions,
            progress_estimate=self.config.progress_estimate,
            recent_limit=self.config.recent_execution_limit,
        )

    async def get_execution_logs(self, execution_id: str) -> Execution:
        """Execution with its result tree"""
        return await self.engine.get_execution_detail(execution_id)

    async def stop_execution(self, execution_id: str) -> bool:
        logger.info(f"Stopping execution {execution_id}")
        return await self.engine.stop_execution(execution_id)
