"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources (reasoning client, intent resolver)
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.llm.reasoning import build_reasoning_client
from config import AppConfig
from observability.logger import log_event, now_ms
from resolver.intent_resolver import IntentResolver
from session.gateway import (
    EngineFactory,
    default_capture_factory,
    default_playback_factory,
)

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    *,
    resolver: IntentResolver | None = None,
    capture_factory: EngineFactory | None = default_capture_factory,
    playback_factory: EngineFactory | None = default_playback_factory,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with fake engines and a fake reasoning client
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()

    app = FastAPI(title="Cooking Voice Controller API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One resolver (and one reasoning client) per process
    if resolver is None:
        client = build_reasoning_client(config)
        if client is None:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "REMOTE_REASONING_UNCONFIGURED",
                "llm_provider": config.llm_provider,
            })
        resolver = IntentResolver(client=client)

    app.state.resolver = resolver
    app.state.capture_factory = capture_factory
    app.state.playback_factory = playback_factory

    # Routes
    register_routes(app)

    return app
