# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Result-tree extraction.

Engine execution documents are untyped and vary by node vendor and version.
Every accessor here returns None for a missing path instead of raising, and
the public extractors always return a string (a placeholder when nothing
usable is found).

Run data lives at:
    data.resultData.runData[<node name>][0].data.main[0][0].json
"""

import json
from typing import Any, List, Optional, Sequence

from flowbridge.conversation.models import AIResult
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.models import Execution

logger = get_service_logger("conversation")

NO_INPUT_AVAILABLE = "No input available"
NO_INPUT_FOUND = "No input found"
NO_OUTPUT_AVAILABLE = "No output available"
NO_OUTPUT_FOUND = "No output found"

CHAT_TRIGGER_NODES = ("Chat Trigger",)
AI_AGENT_NODES = ("AI Agent",)
RESPOND_TO_WEBHOOK_NODES = ("Respond to Webhook",)

AI_CONTENT_FIELDS = ("response", "text", "message")
AGENT_REPLY_FIELDS = ("response", "text", "message", "output")


def dig(tree: Any, *path: Any) -> Optional[Any]:
    """Follow dict keys / list indexes; None as soon as a step is missing"""
    node = tree
    for step in path:
        if isinstance(step, int):
            if not isinstance(node, list) or not -len(node) <= step < len(node):
                return None
            node = node[step]
        else:
            if not isinstance(node, dict) or step not in node:
                return None
            node = node[step]
    return node


def run_data(result: Any) -> Optional[dict]:
    found = dig(result, "data", "resultData", "runData")
    return found if isinstance(found, dict) else None


def node_json(result: Any, node_name: str) -> Optional[dict]:
    """First output item's json for a named node"""
    found = dig(result, "data", "resultData", "runData", node_name, 0, "data", "main", 0, 0, "json")
    return found if isinstance(found, dict) else None


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _first_present(candidates: Sequence[Any]) -> Optional[str]:
    for value in candidates:
        if value:
            return _as_text(value)
    return None


def extract_input(result: Any, chat_nodes: Sequence[str] = CHAT_TRIGGER_NODES) -> str:
    """
    Recover the user input of an execution.

    Precedence: chat-trigger chatInput, chat-trigger message, json.chatInput,
    input, message, prompt, the result itself if it is a string.
    """
    if result is None:
        return NO_INPUT_AVAILABLE

    try:
        node_fields = []
        for name in chat_nodes:
            trigger = node_json(result, name) or {}
            node_fields += [trigger.get("chatInput"), trigger.get("message")]

        found = _first_present(node_fields + [
            dig(result, "json", "chatInput"),
            dig(result, "input"),
            dig(result, "message"),
            dig(result, "prompt"),
        ])
        if found is not None:
            return found
        if isinstance(result, str) and result:
            return result
    except Exception as e:
        logger.warning(f"Error extracting input: {e}")
        return NO_INPUT_FOUND

    logger.debug("No input found in execution result")
    return NO_INPUT_FOUND


def extract_output(
    result: Any,
    agent_nodes: Sequence[str] = AI_AGENT_NODES,
    responder_nodes: Sequence[str] = RESPOND_TO_WEBHOOK_NODES
) -> str:
    """
    Recover the system output of an execution.

    Precedence: AI-agent output, respond-to-webhook output, json.output,
    output, response, result.
    """
    if result is None:
        return NO_OUTPUT_AVAILABLE

    try:
        node_fields = [(node_json(result, name) or {}).get("output") for name in (*agent_nodes, *responder_nodes)]
        found = _first_present(node_fields + [
            dig(result, "json", "output"),
            dig(result, "output"),
            dig(result, "response"),
            dig(result, "result"),
        ])
        if found is not None:
            return found
    except Exception as e:
        logger.warning(f"Error extracting output: {e}")
        return NO_OUTPUT_FOUND

    logger.debug("No output found in execution result")
    return NO_OUTPUT_FOUND


def extract_ai_results(execution: Execution) -> List[AIResult]:
    """Text responses from every node's first output branch"""
    results: List[AIResult] = []
    nodes = run_data(execution.result) or {}

    for node_name, runs in nodes.items():
        first_run = dig(runs, 0)
        outputs = dig(first_run, "data", "main", 0)
        if not isinstance(outputs, list):
            continue

        for index, item in enumerate(outputs):
            payload = dig(item, "json")
            if not isinstance(payload, dict):
                continue
            content = _first_present([payload.get(f) for f in AI_CONTENT_FIELDS])
            if content is None:
                continue
            tokens = payload.get("tokens")
            confidence = payload.get("confidence")
            execution_time = dig(first_run, "executionTime")
            results.append(AIResult(
                id=f"{node_name}-{index}",
                node_id=node_name,
                node_name=node_name,
                content=content,
                timestamp=execution.started_at,
                model=str(payload.get("model") or "unknown"),
                confidence=confidence if _is_number(confidence) else 0.8,
                execution_time=execution_time if _is_number(execution_time) else 0,
                tokens=tokens if isinstance(tokens, int) and _is_number(tokens) else None,
            ))

    return results


def agent_reply_text(execution: Execution) -> Optional[str]:
    """First non-blank string reply in any node's first output branch"""
    for runs in (run_data(execution.result) or {}).values():
        outputs = dig(runs, 0, "data", "main", 0)
        if not isinstance(outputs, list):
            continue
        for item in outputs:
            payload = dig(item, "json")
            if not isinstance(payload, dict):
                continue
            for field in AGENT_REPLY_FIELDS:
                value = payload.get(field)
                if isinstance(value, str) and value.strip():
                    return value
    return None


def webhook_reply_text(data: Any) -> Optional[str]:
    """
    Reply carried directly in a webhook response body.

    Respond-to-webhook nodes may answer with a string, an object or a list
    of items; only the first item of a list is considered.
    """
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, str):
        return data or None
    if not isinstance(data, dict):
        return None
    return _first_present([
        data.get("response"),
        data.get("message"),
        data.get("text"),
        data.get("output"),
        dig(data, "data", "response"),
        dig(data, "data", "message"),
        dig(data, "data", "output"),
    ])
