# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Engine Client

Thin async HTTP client for the workflow-automation engine's REST API.
Every failure (non-2xx or transport) is raised as EngineError.
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from flowbridge.core.config import Config
from flowbridge.core.errors import EngineError
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.models import Execution, TriggerOutcome, Workflow

logger = get_service_logger("engine-client")


class EngineClient:
    """
    Authenticated client for the engine API.

    Endpoints used:
    - GET  /workflows, /workflows/{id}
    - GET  /executions?workflowId=&limit=, /executions/{id}[?includeData=true]
    - GET  /executions/{id}/results (best-effort)
    - POST /workflows/{id}/execute, /executions/{id}/stop
    """

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        headers = {
            "Content-Type": "application/json",
            "User-Agent": config.user_agent,
        }
        if config.api_key:
            headers["X-N8N-API-KEY"] = config.api_key
        self.client = httpx.AsyncClient(
            base_url=config.api_base_url,
            headers=headers,
            timeout=config.http_timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None
    ) -> Any:
        """Make an authenticated API request and return decoded JSON"""
        logger.debug(f"Engine API request: {method} {endpoint}")
        try:
            response = await self.client.request(method, endpoint, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(
                "Engine API transport failure",
                extra={"endpoint": endpoint, "method": method, "error": str(e)}
            )
            raise EngineError(f"Engine unreachable: {e}", endpoint=endpoint) from e

        if not response.is_success:
            logger.warning(
                "Engine API error response",
                extra={"endpoint": endpoint, "method": method, "status": response.status_code}
            )
            raise EngineError(
                f"Engine API error: {response.status_code} {response.reason_phrase} - {response.text}",
                status=response.status_code,
                endpoint=endpoint,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise EngineError(
                f"Engine API returned invalid JSON for {endpoint}",
                status=response.status_code,
                endpoint=endpoint,
            ) from e

    @staticmethod
    def _unwrap_list(body: Any) -> List[Dict[str, Any]]:
        """List endpoints answer {data: [...], nextCursor}"""
        if isinstance(body, dict):
            body = body.get("data", [])
        return body if isinstance(body, list) else []

    # =========================================================================
    # WORKFLOWS
    # =========================================================================

    async def get_workflows(self) -> List[Workflow]:
        body = await self._request("GET", "/workflows")
        return [Workflow.model_validate(w) for w in self._unwrap_list(body)]

    async def get_workflow(self, workflow_id: str) -> Workflow:
        body = await self._request("GET", f"/workflows/{workflow_id}")
        return Workflow.model_validate(body)

    # =========================================================================
    # EXECUTIONS
    # =========================================================================

    async def get_executions(self, workflow_id: Optional[str] = None, limit: int = 20) -> List[Execution]:
        """
        List executions, most recent first.

        Items that fail validation are logged and left out of the list.
        """
        params: Dict[str, Any] = {"limit": limit}
        if workflow_id:
            params["workflowId"] = workflow_id
        body = await self._request("GET", "/executions", params=params)
        executions = []
        for item in self._unwrap_list(body):
            try:
                executions.append(Execution.from_engine(item))
            except PydanticValidationError as e:
                logger.warning(
                    "Skipping malformed execution",
                    extra={"execution_id": item.get("id") if isinstance(item, dict) else None, "error": str(e)}
                )
        return executions

    async def get_execution_detail(self, execution_id: str, include_data: bool = True) -> Execution:
        """
        Fetch an execution with its result tree.

        Tries the data-rich request first and silently retries without the
        includeData flag if the engine rejects it. When run data is still
        missing, the secondary results endpoint is tried; its failure only
        means "no result data".
        """
        endpoint = f"/executions/{execution_id}"
        body = None
        if include_data:
            try:
                body = await self._request("GET", endpoint, params={"includeData": "true"})
            except EngineError as e:
                logger.info(f"includeData rejected for execution {execution_id}, retrying plain: {e.message}")
        if body is None:
            body = await self._request("GET", endpoint)
        if not isinstance(body, dict):
            raise EngineError(f"Unexpected execution payload for {execution_id}", endpoint=endpoint)

        data = body.get("data")
        if not isinstance(data, dict) or not data.get("resultData"):
            try:
                result_data = await self._request("GET", f"{endpoint}/results")
                body["data"] = {**(data if isinstance(data, dict) else {}), "resultData": result_data}
            except EngineError as e:
                logger.warning(
                    "Could not fetch separate result data",
                    extra={"execution_id": execution_id, "error": e.message}
                )

        try:
            return Execution.from_engine(body)
        except PydanticValidationError as e:
            raise EngineError(f"Malformed execution payload for {execution_id}", endpoint=endpoint) from e

    async def execute_manual(self, workflow_id: str, payload: Optional[Dict[str, Any]] = None) -> TriggerOutcome:
        """Trigger a workflow through the engine's manual-run endpoint"""
        body = await self._request("POST", f"/workflows/{workflow_id}/execute", json={"data": payload or {}})
        execution_id = body.get("id") if isinstance(body, dict) else None
        return TriggerOutcome(
            execution_id=str(execution_id) if execution_id is not None else None,
            data=body,
        )

    async def stop_execution(self, execution_id: str) -> bool:
        """Request a stop; True if the engine accepted it"""
        try:
            await self._request("POST", f"/executions/{execution_id}/stop")
            return True
        except EngineError as e:
            logger.error(f"Failed to stop execution {execution_id}: {e.message}")
            return False

    # =========================================================================
    # HEALTH
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """Probe the engine by listing one workflow; never raises"""
        try:
            await self._request("GET", "/workflows", params={"limit": 1})
            return {"status": "healthy", "engine_url": self.config.engine_root}
        except EngineError as e:
            return {"status": "unhealthy", "engine_url": self.config.engine_root, "error": e.message}

    async def close(self) -> None:
        """Close HTTP client"""
        await self.client.aclose()
