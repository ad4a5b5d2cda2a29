# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Analyzer

Classifies an engine workflow into a business capability, derives the
executive controls it supports and summarizes its execution history.

Classification is table-driven: each table is evaluated top to bottom and
the first matching row wins, so precedence is exactly the row order.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from flowbridge.analysis.models import (
    BusinessMetrics,
    ExecutionHistory,
    ExecutiveControl,
    Kpi,
    NodeAnalysis,
    NodeCategory,
    WorkflowCapabilities,
    WorkflowCategory,
    WorkflowInsight,
)
from flowbridge.engine.introspection import (
    analyze_triggers,
    is_chat_trigger,
    is_manual_trigger,
    is_plain_webhook,
)
from flowbridge.engine.models import Execution, Node, TestScenario, Workflow
from flowbridge.utils.formatting import percent, round_half_up

# =============================================================================
# NODE CLASSIFICATION
# =============================================================================

# Substring checks against the lower-cased node type
NODE_CATEGORY_RULES: List[Tuple[NodeCategory, Tuple[str, ...]]] = [
    ("trigger", ("trigger", "webhook", "schedule")),
    ("ai_model", ("langchain", "openai", "agent")),
    ("tool", ("http", "tool", "api")),
    ("data_source", ("set", "split", "merge", "transform", "filter")),
    ("notification", ("telegram", "email", "slack")),
]
DEFAULT_NODE_CATEGORY: NodeCategory = "control_flow"

NODE_DESCRIPTIONS: Dict[str, str] = {
    "chatTrigger": "Chat interface for AI agent conversations",
    "agent": "AI agent for automated conversations and task execution",
    "vectorStore": "Knowledge base storage and retrieval system",
    "httpRequestTool": "External API integration tool",
    "webhook": "Incoming data receiver from external systems",
    "telegram": "Telegram messaging and notifications",
    "memoryPostgresChat": "Conversation memory and context storage",
    "respondToWebhook": "Response handler for incoming requests",
}


def categorize_node(node_type: str) -> NodeCategory:
    """Map any node type string to exactly one category"""
    lowered = (node_type or "").lower()
    for category, needles in NODE_CATEGORY_RULES:
        if any(needle in lowered for needle in needles):
            return category
    return DEFAULT_NODE_CATEGORY


def describe_node(node_type: str, node_name: str) -> str:
    key = node_type.rsplit(".", 1)[-1]
    return NODE_DESCRIPTIONS.get(key) or f"{node_name} - {node_type}"


def _connection_targets(workflow: Workflow, node_name: str) -> List[str]:
    """Names of nodes fed by `node_name` ({source: {main: [[{node: target}]]}})"""
    targets: List[str] = []
    outputs = workflow.connections.get(node_name)
    if not isinstance(outputs, dict):
        return targets
    for branches in outputs.values():
        if not isinstance(branches, list):
            continue
        for branch in branches:
            if not isinstance(branch, list):
                continue
            for link in branch:
                target = link.get("node") if isinstance(link, dict) else None
                if target and target not in targets:
                    targets.append(target)
    return targets


def analyze_node(node: Node, workflow: Workflow) -> NodeAnalysis:
    return NodeAnalysis(
        id=node.id,
        name=node.name,
        type=node.type,
        category=categorize_node(node.type),
        description=describe_node(node.type, node.name),
        is_executable=any(s in node.type for s in ("http", "agent", "tool")),
        has_output="respondTo" not in node.type and "notification" not in node.type,
        connections=_connection_targets(workflow, node.name),
    )


# =============================================================================
# WORKFLOW CLASSIFICATION
# =============================================================================

@dataclass(frozen=True)
class WorkflowSignals:
    has_ai: bool
    has_chat: bool
    has_webhook: bool
    has_trigger: bool
    has_notifications: bool
    has_data: bool

    @classmethod
    def from_nodes(cls, nodes: Sequence[NodeAnalysis]) -> "WorkflowSignals":
        categories = {n.category for n in nodes}
        return cls(
            has_ai="ai_model" in categories,
            has_chat=any("chat" in n.type for n in nodes),
            has_webhook=any("webhook" in n.type for n in nodes),
            has_trigger="trigger" in categories,
            has_notifications="notification" in categories,
            has_data="data_source" in categories,
        )


WORKFLOW_CATEGORY_RULES: List[Tuple[Callable[[WorkflowSignals], bool], WorkflowCategory]] = [
    (lambda s: s.has_ai and s.has_chat, "ai_agent"),
    (lambda s: s.has_webhook and not s.has_ai, "webhook_service"),
    (lambda s: s.has_notifications and s.has_trigger, "notification_system"),
    (lambda s: s.has_data, "data_processor"),
]
DEFAULT_WORKFLOW_CATEGORY: WorkflowCategory = "automation_pipeline"


def categorize_workflow(workflow: Workflow, nodes: Sequence[NodeAnalysis]) -> WorkflowCategory:
    signals = WorkflowSignals.from_nodes(nodes)
    for matches, category in WORKFLOW_CATEGORY_RULES:
        if matches(signals):
            return category
    return DEFAULT_WORKFLOW_CATEGORY


def analyze_capabilities(nodes: Sequence[NodeAnalysis]) -> WorkflowCapabilities:
    def any_type(*needles: str) -> bool:
        return any(needle in n.type for n in nodes for needle in needles)

    def any_category(category: str) -> bool:
        return any(n.category == category for n in nodes)

    return WorkflowCapabilities(
        can_execute_manually=any_type("manual"),
        has_webhook_trigger=any_type("webhook"),
        has_scheduled_trigger=any_type("schedule"),
        has_ai_components=any_category("ai_model"),
        has_data_processing=any_category("data_source"),
        has_notifications=any_category("notification"),
        has_external_apis=any_category("tool"),
        requires_input=any_type("webhook", "manual"),
    )


def generate_executive_controls(workflow: Workflow, capabilities: WorkflowCapabilities) -> List[ExecutiveControl]:
    """Execute, test-webhook, test-AI-agent when supported; live monitor always last"""
    controls = []

    if capabilities.can_execute_manually:
        controls.append(ExecutiveControl(
            type="execute",
            label="Run Workflow",
            description="Execute workflow manually with test data",
            endpoint=f"/workflows/{workflow.id}/execute",
            payload={},
        ))

    if capabilities.has_webhook_trigger:
        controls.append(ExecutiveControl(
            type="test",
            label="Test Webhook",
            description="Send test payload to webhook endpoint",
            endpoint=f"/workflows/{workflow.id}/webhook-test",
        ))

    if capabilities.has_ai_components:
        controls.append(ExecutiveControl(
            type="test",
            label="Test AI Agent",
            description="Send test message to AI agent",
            endpoint=f"/workflows/{workflow.id}/agent-test",
        ))

    controls.append(ExecutiveControl(
        type="monitor",
        label="Live Monitor",
        description="Real-time execution monitoring and logs",
        endpoint=f"/workflows/{workflow.id}/monitor",
    ))

    return controls


# =============================================================================
# EXECUTION HISTORY & KPIs
# =============================================================================

def analyze_execution_history(executions: Sequence[Execution]) -> ExecutionHistory:
    """Aggregate counts; durations only over executions with both timestamps"""
    durations = [e.duration_ms for e in executions if e.duration_ms is not None]
    return ExecutionHistory(
        total=len(executions),
        successful=sum(1 for e in executions if e.status == "success"),
        failed=sum(1 for e in executions if e.status == "error"),
        average_duration=sum(durations) / len(durations) if durations else 0.0,
        last_execution=executions[0].started_at if executions else None,
    )


def _seconds(ms: float) -> str:
    return f"{max(1, round_half_up(ms / 1000))}s"


def generate_business_metrics(category: WorkflowCategory, history: ExecutionHistory) -> BusinessMetrics:
    success_rate = percent(history.successful, history.total)

    if category == "ai_agent":
        return BusinessMetrics(
            description="Digital employee for customer interaction (chat/assistance)",
            kpis=[
                Kpi(label="Success rate", value=f"{success_rate}%", trend="up" if success_rate >= 90 else "down"),
                Kpi(label="Avg. response time", value=_seconds(history.average_duration)),
                Kpi(label="Interactions", value=history.total),
                Kpi(label="Errors", value=history.failed),
            ],
        )

    if category == "webhook_service":
        return BusinessMetrics(
            description="API service / webhook integration",
            kpis=[
                Kpi(label="Total requests", value=history.total),
                Kpi(label="Error rate", value=f"{percent(history.failed, history.total)}%"),
                Kpi(label="Avg. processing time", value=f"{round_half_up(history.average_duration)}ms"),
                Kpi(label="Success rate", value=f"{success_rate}%"),
            ],
        )

    return BusinessMetrics(
        description="Automated business process",
        kpis=[
            Kpi(label="Success rate", value=f"{success_rate}%"),
            Kpi(label="Executions", value=history.total),
            Kpi(label="Avg. duration", value=_seconds(history.average_duration)),
        ],
    )


# =============================================================================
# TEST SCENARIOS
# =============================================================================

def generate_test_scenarios(workflow: Workflow) -> List[TestScenario]:
    """Chat, webhook, manual (in that order) for the triggers present; else Basic Test"""
    nodes = workflow.nodes
    scenarios = []

    if any(is_chat_trigger(n) for n in nodes):
        scenarios.append(TestScenario(
            name="Chat Test",
            description="Minimal chat input",
            payload={"chatInput": "Hello"},
            preferred_trigger_type="chat",
        ))

    if any(is_plain_webhook(n) for n in nodes):
        scenarios.append(TestScenario(
            name="Webhook Test",
            description="Minimal payload",
            payload={},
            preferred_trigger_type="webhook",
        ))

    if any(is_manual_trigger(n) for n in nodes):
        scenarios.append(TestScenario(
            name="Manual Test",
            description="Basic manual execution",
            payload={},
            preferred_trigger_type="manual",
        ))

    if not scenarios:
        scenarios.append(TestScenario(
            name="Basic Test",
            description="Fallback execution",
            payload={},
            preferred_trigger_type="manual",
        ))

    return scenarios


# =============================================================================
# ENTRY POINT
# =============================================================================

def analyze_workflow(workflow: Workflow, executions: Sequence[Execution] = ()) -> WorkflowInsight:
    """Full insight for one workflow and its (most-recent-first) executions"""
    nodes = [analyze_node(node, workflow) for node in workflow.nodes]
    category = categorize_workflow(workflow, nodes)
    capabilities = analyze_capabilities(nodes)
    history = analyze_execution_history(list(executions))

    return WorkflowInsight(
        workflow=workflow,
        category=category,
        capabilities=capabilities,
        nodes=nodes,
        controls=generate_executive_controls(workflow, capabilities),
        triggers=analyze_triggers(workflow),
        execution_history=history,
        business_metrics=generate_business_metrics(category, history),
    )
