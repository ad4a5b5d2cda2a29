# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FlowBridge API - bridge to a workflow-automation engine
Executes workflows, reports insights and live monitoring
"""
# Load environment variables from .env file (local development)
from dotenv import load_dotenv
from pathlib import Path as _PathForEnv
_env_path = _PathForEnv(__file__).parent.parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from flowbridge.api import automation
from flowbridge.core.config import Config, get_config
from flowbridge.core.logging import get_logger
from flowbridge.engine.client import EngineClient
from flowbridge.engine.webhook import WebhookResolver

logger = get_logger(__name__)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration to use (defaults to get_config())

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = EngineClient(config)
        app.state.engine_client = engine
        app.state.webhook_resolver = WebhookResolver(config, engine)
        logger.info(f"Engine client initialized for {config.api_base_url or '<unset>'}")
        try:
            yield
        finally:
            await app.state.webhook_resolver.close()
            await engine.close()
            logger.info("Engine clients closed")

    app = FastAPI(
        title="FlowBridge",
        description="Bridge to a workflow-automation engine",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(automation.router)

    @app.get("/health")
    async def health(request: Request) -> Dict[str, Any]:
        """Service health, including engine reachability"""
        engine_health = await request.app.state.engine_client.health_check()
        return {"status": "healthy", "engine": engine_health}

    return app


app = create_app()
