# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency injection for the FlowBridge API.

Engine and webhook clients are created once at startup (see main.py) and
live on app.state; services are cheap wrappers built per request.
"""

from fastapi import Depends, Request

from flowbridge.core.config import Config

def get_current_config(request: Request) -> Config:
    """Configuration the application was created with."""
    return request.app.state.config


def get_engine_client(request: Request):
    """Get the shared EngineClient instance."""
    return request.app.state.engine_client


def get_webhook_resolver(request: Request):
    """Get the shared WebhookResolver instance."""
    return request.app.state.webhook_resolver


def get_execution_controller(
    config: Config = Depends(get_current_config),
    engine=Depends(get_engine_client),
    resolver=Depends(get_webhook_resolver)
):
    """Get ExecutionController instance."""
    from flowbridge.services.execution_controller import ExecutionController
    return ExecutionController(config=config, engine=engine, resolver=resolver)


def get_insight_service(
    config: Config = Depends(get_current_config),
    engine=Depends(get_engine_client)
):
    """Get InsightService instance."""
    from flowbridge.services.insight_service import InsightService
    return InsightService(config=config, engine=engine)


def get_conversation_reconstructor(engine=Depends(get_engine_client)):
    """Get ConversationReconstructor instance."""
    from flowbridge.conversation.reconstructor import ConversationReconstructor
    return ConversationReconstructor(engine=engine)


def get_agent_chat_service(
    config: Config = Depends(get_current_config),
    engine=Depends(get_engine_client),
    resolver=Depends(get_webhook_resolver)
):
    """Get AgentChatService instance."""
    from flowbridge.services.agent_chat import AgentChatService
    return AgentChatService(config=config, engine=engine, resolver=resolver)
