# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Webhook Execution Resolver

Picks the trigger node a payload should enter through, builds its webhook
URL and calls it with a fixed fallback chain:

    1. {chosen}/{path}        chosen = live base if workflow.active else test base
    2. {chosen}/{path}/chat
    3. {other}/{path}         only if the other base is configured
    4. {other}/{path}/chat

Attempts are sequential. The chain stops at the first 2xx; a 404 moves to
the next URL; anything else is terminal.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from flowbridge.core.config import Config
from flowbridge.core.errors import (
    ConfigurationError,
    EngineError,
    NoTriggerFoundError,
    WebhookNotFoundError,
)
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.client import EngineClient
from flowbridge.engine.introspection import is_chat_trigger, is_plain_webhook
from flowbridge.engine.models import Node, TriggerOutcome, Workflow

logger = get_service_logger("webhook-resolver")

DEFAULT_PAYLOAD: Dict[str, Any] = {"test": True, "source": "flowbridge"}
DEFAULT_CHAT_INPUT = "Hello"
CHAT_SUFFIX = "/chat"

CHAT_FIELDS = ("message", "text", "chatInput")
API_FIELDS = ("event", "data", "customer", "service")


# =============================================================================
# PAYLOAD HEURISTICS
# =============================================================================

def looks_like_chat(payload: Optional[Dict[str, Any]]) -> bool:
    """Best-effort: payload carries a non-empty message-like string"""
    if not payload:
        return False
    return any(isinstance(payload.get(f), str) and payload[f].strip() for f in CHAT_FIELDS)


def looks_like_api(payload: Optional[Dict[str, Any]]) -> bool:
    """Best-effort: payload carries an event/data/customer/service field"""
    if not payload:
        return False
    return any(payload.get(f) for f in API_FIELDS)


# =============================================================================
# TRIGGER SELECTION
# =============================================================================

@dataclass(frozen=True)
class SelectionContext:
    candidates: List[Node]
    trigger_node_id: Optional[str]
    looks_like_chat: bool
    looks_like_api: bool


@dataclass(frozen=True)
class TriggerSelection:
    node: Node
    rule: str
    looks_like_chat: bool
    looks_like_api: bool


def _first(nodes: List[Node], predicate: Callable[[Node], bool]) -> Optional[Node]:
    return next((n for n in nodes if predicate(n)), None)


def _explicit(ctx: SelectionContext) -> Optional[Node]:
    if not ctx.trigger_node_id:
        return None
    return _first(ctx.candidates, lambda n: n.id == ctx.trigger_node_id)


def _chat_unless_api(ctx: SelectionContext) -> Optional[Node]:
    if ctx.looks_like_api:
        return None
    return _first(ctx.candidates, is_chat_trigger)


# Evaluated top to bottom; the first rule returning a node wins
SELECTION_RULES: List[Tuple[str, Callable[[SelectionContext], Optional[Node]]]] = [
    ("explicit", _explicit),
    ("chat_preferred", _chat_unless_api),
    ("plain_webhook", lambda ctx: _first(ctx.candidates, is_plain_webhook)),
    ("chat_fallback", lambda ctx: _first(ctx.candidates, is_chat_trigger)),
    ("first_candidate", lambda ctx: ctx.candidates[0] if ctx.candidates else None),
]


def select_trigger(
    workflow: Workflow,
    payload: Optional[Dict[str, Any]] = None,
    trigger_node_id: Optional[str] = None
) -> TriggerSelection:
    """
    Choose exactly one webhook-carrying node.

    Raises NoTriggerFoundError when the workflow has no candidate.
    """
    ctx = SelectionContext(
        candidates=[n for n in workflow.nodes if n.is_trigger_candidate],
        trigger_node_id=trigger_node_id,
        looks_like_chat=looks_like_chat(payload),
        looks_like_api=looks_like_api(payload),
    )
    for rule, pick in SELECTION_RULES:
        node = pick(ctx)
        if node is not None:
            return TriggerSelection(node, rule, ctx.looks_like_chat, ctx.looks_like_api)

    raise NoTriggerFoundError(workflow.id)


# =============================================================================
# REQUEST CONSTRUCTION
# =============================================================================

def webhook_path(node: Node) -> str:
    """Explicit path parameter for plain webhooks, else the webhook id"""
    if is_plain_webhook(node):
        path = (node.parameters or {}).get("path")
        if isinstance(path, str) and path.strip("/"):
            return path.strip("/")
    return node.webhook_id or ""


def http_method(node: Node) -> str:
    """Configured method, POST by default; lists prefer POST"""
    param = (node.parameters or {}).get("httpMethod")
    if isinstance(param, list):
        if "POST" in param:
            return "POST"
        first = param[0] if param else None
        return first.upper() if isinstance(first, str) else "POST"
    if isinstance(param, str) and param:
        return param.upper()
    return "POST"


def build_payload(node: Node, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Outgoing body without the request timestamp.

    Chat triggers get `chatInput` from message/text/input, then any existing
    chatInput, then the default greeting.
    """
    body = dict(payload) if payload is not None else dict(DEFAULT_PAYLOAD)
    if is_chat_trigger(node):
        body["chatInput"] = (
            body.get("message") or body.get("text") or body.get("input")
            or body.get("chatInput") or DEFAULT_CHAT_INPUT
        )
    return body


def fallback_urls(config: Config, workflow: Workflow, path: str) -> List[str]:
    """The ordered attempt list for one trigger"""
    live, test = config.live_webhook_base, config.test_webhook_base
    if not live and not test:
        raise ConfigurationError(
            "Webhook base URLs not configured (set N8N_WEBHOOK_URL/N8N_WEBHOOK_TEST_URL or N8N_BASE_URL)",
            setting="webhook_live_url"
        )
    chosen, other = (live, test) if workflow.active else (test, live)
    if not chosen:
        raise ConfigurationError(
            f"{'Live' if workflow.active else 'Test'} webhook base URL not configured",
            setting="webhook_live_url" if workflow.active else "webhook_test_url"
        )

    plan = [(chosen, ""), (chosen, CHAT_SUFFIX)]
    if other and other != chosen:
        plan += [(other, ""), (other, CHAT_SUFFIX)]
    return [f"{base}/{path}{suffix}" for base, suffix in plan]


# =============================================================================
# RESOLVER
# =============================================================================

class WebhookResolver:
    """
    Executes workflows through their webhook triggers.

    Uses its own HTTP client (webhooks are not API-key authenticated); each
    attempt carries its own timeout.
    """

    def __init__(
        self,
        config: Config,
        engine: EngineClient,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config
        self.engine = engine
        self.client = httpx.AsyncClient(
            headers={"Content-Type": "application/json", "User-Agent": config.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def execute(
        self,
        workflow: Workflow,
        payload: Optional[Dict[str, Any]] = None,
        trigger_node_id: Optional[str] = None
    ) -> TriggerOutcome:
        """
        Trigger `workflow` through its best-matching webhook.

        Raises:
            NoTriggerFoundError: no node carries a webhook id
            ConfigurationError: webhook bases are not configured
            EngineError: a non-404 failure or transport error
            WebhookNotFoundError: every URL answered 404
        """
        selection = select_trigger(workflow, payload, trigger_node_id)
        node = selection.node
        method = http_method(node)

        logger.info(
            "Executing webhook",
            extra={
                "workflow_id": workflow.id,
                "trigger_node_id": node.id,
                "trigger_rule": selection.rule,
                "looks_like_chat": selection.looks_like_chat,
                "looks_like_api": selection.looks_like_api,
                "method": method,
            }
        )

        body = build_payload(node, payload)
        body["timestamp"] = datetime.now(timezone.utc).isoformat()

        outcome = await self.deliver(workflow, webhook_path(node), body, method)
        return outcome.model_copy(update={
            "execution_id": await self._latest_execution_id(workflow.id),
            "trigger_node_id": node.id,
        })

    async def deliver(
        self,
        workflow: Workflow,
        path: str,
        body: Dict[str, Any],
        method: str = "POST"
    ) -> TriggerOutcome:
        """
        Send `body` as-is through the fallback chain for `path`.

        Raises:
            ConfigurationError: webhook bases are not configured
            EngineError: a non-404 failure or transport error
            WebhookNotFoundError: every URL answered 404
        """
        urls = fallback_urls(self.config, workflow, path)
        attempted: List[str] = []
        for url in urls:
            attempted.append(url)
            response = await self._send(method, url, body)
            if response.status_code == 404:
                logger.info(f"Webhook 404, trying next fallback: {url}")
                continue
            if not response.is_success:
                raise EngineError(
                    f"Webhook execution failed: {response.status_code} {response.reason_phrase}",
                    status=response.status_code,
                    endpoint=url,
                    details={"attempted_urls": attempted},
                )

            logger.info(f"Webhook accepted: {url}", extra={"status": response.status_code})
            return TriggerOutcome(data=self._decode(response), url=url, attempted_urls=attempted)

        raise WebhookNotFoundError(attempted)

    async def _send(self, method: str, url: str, body: Dict[str, Any]) -> httpx.Response:
        logger.debug(f"Webhook attempt: {method} {url}")
        try:
            return await self.client.request(
                method,
                url,
                json=None if method == "GET" else body,
                timeout=self.config.webhook_timeout,
            )
        except httpx.HTTPError as e:
            raise EngineError(f"Webhook request failed: {e}", endpoint=url) from e

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _latest_execution_id(self, workflow_id: str) -> Optional[str]:
        """Correlate with the engine's newest execution (best-effort)"""
        try:
            executions = await self.engine.get_executions(workflow_id, limit=1)
        except EngineError as e:
            logger.warning(f"Could not correlate execution id for {workflow_id}: {e.message}")
            return None
        return executions[0].id if executions else None

    async def close(self) -> None:
        await self.client.aclose()
