# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Trigger Introspection

Finds the entry points of a workflow and what kind of client each one needs.
"""

from typing import Callable, List, Literal, Optional, Tuple
from pydantic import Field

from flowbridge.engine.models import EngineModel, Node, Workflow

TriggerType = Literal[
    "chat", "webhook", "telegram", "slack", "discord",
    "whatsapp", "email", "manual", "cron"
]

CHAT_TRIGGER_SUFFIX = "chatTrigger"
WEBHOOK_SUFFIX = "webhook"
MANUAL_TRIGGER_SUFFIX = "manualTrigger"


def is_chat_trigger(node: Node) -> bool:
    return node.type_suffix == CHAT_TRIGGER_SUFFIX


def is_plain_webhook(node: Node) -> bool:
    return node.type_suffix == WEBHOOK_SUFFIX


def is_manual_trigger(node: Node) -> bool:
    return node.type_suffix == MANUAL_TRIGGER_SUFFIX


def _type_has(*needles: str) -> Callable[[Node], bool]:
    def check(node: Node) -> bool:
        node_type = node.type.lower()
        return any(n in node_type for n in needles)
    return check


class TriggerInfo(EngineModel):
    """One workflow entry point"""
    node_id: str = Field(alias="nodeId")
    node_name: str = Field(alias="nodeName")
    type: TriggerType
    webhook_id: Optional[str] = Field(default=None, alias="webhookId")
    is_public: Optional[bool] = Field(default=None, alias="isPublic")
    requires_external_client: Optional[bool] = Field(default=None, alias="requiresExternalClient")
    prompt_field: Optional[str] = Field(default=None, alias="promptField")


# (predicate, type, is_public, requires_external_client); first match wins
TRIGGER_RULES: List[Tuple[Callable[[Node], bool], str, Optional[bool], Optional[bool]]] = [
    (is_chat_trigger, "chat", None, False),
    (is_plain_webhook, "webhook", True, False),
    (_type_has("telegramtrigger"), "telegram", False, True),
    (_type_has("slacktrigger"), "slack", False, True),
    (_type_has("discordtrigger"), "discord", False, True),
    (_type_has("whatsapptrigger", "meta-whatsapp-trigger"), "whatsapp", False, True),
    (_type_has("emailtrigger", "imaptrigger"), "email", False, True),
    (is_manual_trigger, "manual", None, None),
    (lambda node: node.type_suffix in ("cron", "scheduleTrigger"), "cron", None, None),
]


def _prompt_field(node: Node) -> str:
    params = node.parameters or {}
    return params.get("promptField") or params.get("prompt") or params.get("promptVariable") or "chatInput"


def classify_trigger(node: Node) -> Optional[TriggerInfo]:
    """Return trigger info for a node, or None if it is not an entry point"""
    for predicate, trigger_type, is_public, external in TRIGGER_RULES:
        if not predicate(node):
            continue
        if trigger_type == "chat":
            is_public = bool((node.parameters or {}).get("public"))
        return TriggerInfo(
            node_id=node.id,
            node_name=node.name,
            type=trigger_type,
            webhook_id=node.webhook_id if trigger_type in ("chat", "webhook") else None,
            is_public=is_public,
            requires_external_client=external,
            prompt_field=_prompt_field(node) if trigger_type == "chat" else None,
        )
    return None


def analyze_triggers(workflow: Workflow) -> List[TriggerInfo]:
    """All entry points of a workflow, in node order"""
    triggers = []
    for node in workflow.nodes:
        info = classify_trigger(node)
        if info is not None:
            triggers.append(info)
    return triggers
