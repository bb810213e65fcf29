"""
Route registration for the cooking voice controller API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from context.recipe import RecipeContext
from observability.logger import log_event, now_ms
from resolver.intent_resolver import IntentResolver
from session.gateway import GatewayResult, SessionGateway


class ResolveRequest(BaseModel):
    transcript: str
    recipe: dict[str, Any] | None = None


class ResolveResponse(BaseModel):
    response: str
    step_delta: int
    source: str


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.post("/api/resolve", response_model=ResolveResponse)
    async def resolve(body: ResolveRequest) -> ResolveResponse: # pyright: ignore[reportUnusedFunction]
        """Headless resolution: no engines, no session state."""
        recipe: RecipeContext | None = None
        if body.recipe is not None:
            try:
                recipe = RecipeContext.from_payload(body.recipe)
            except (TypeError, ValueError) as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc

        resolver: IntentResolver = app.state.resolver
        answer = await resolver.resolve(body.transcript, recipe)
        return ResolveResponse(
            response=answer.response_text,
            step_delta=answer.step_delta,
            source=answer.source.value,
        )

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(
            config=app.state.config,
            resolver=app.state.resolver,
            capture_factory=app.state.capture_factory,
            playback_factory=app.state.playback_factory,
        )
        pusher: asyncio.Task[None] | None = None

        try:
            result = await gateway.on_ws_connect()
            await _flush_gateway_result(ws, result)

            # Engine callbacks and resolution results arrive between
            # client messages; they are pushed from here.
            pusher = asyncio.create_task(_push_outbound(ws, gateway))

            while True:
                text = await ws.receive_text()
                result = await gateway.on_json_message(text)
                await _flush_gateway_result(ws, result)
                if result.close:
                    await ws.close()
                    break

        except WebSocketDisconnect:
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": now_ms(),
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await gateway.on_ws_disconnect(reason="server_error")

        finally:
            if pusher is not None:
                pusher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pusher


async def _push_outbound(ws: WebSocket, gateway: SessionGateway) -> None:
    while True:
        for msg in await gateway.next_outbound():
            await ws.send_text(json.dumps(msg))


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
) -> None:
    for msg in result.outbound_json:
        await ws.send_text(json.dumps(msg))
