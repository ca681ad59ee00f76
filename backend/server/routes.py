"""
Route registration for the voice navigation API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pump timer-driven control messages to the client
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from observability.logger import log_event
from session.gateway import GatewayResult, SessionGateway


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(
            config=app.state.config,
            store=app.state.health_store,
        )
        send_lock = asyncio.Lock()
        pump: asyncio.Task[None] | None = None

        try:
            result = await gateway.on_ws_connect()
            assert gateway.session is not None
            gateway.session.websocket = ws
            await _flush_gateway_result(ws, result, send_lock)

            pump = asyncio.create_task(_pump_outbound(ws, gateway, send_lock))

            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect()

                if msg.get("text") is not None:
                    result = await gateway.on_json_message(msg["text"])
                    await _flush_gateway_result(ws, result, send_lock)

                elif msg.get("bytes") is not None:
                    log_event({
                        "event_type": "BINARY_MESSAGE_IGNORED",
                        "session_id": gateway.session.session_id,
                        "payload_len": len(msg["bytes"]),
                    })

        except WebSocketDisconnect:
            await _stop_pump(pump)
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await _stop_pump(pump)
            await gateway.on_ws_disconnect(reason="server_error")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

async def _pump_outbound(
    ws: WebSocket,
    gateway: SessionGateway,
    send_lock: asyncio.Lock,
) -> None:
    """
    Deliver messages queued outside an inbound request (timer expiry).

    Runs until cancelled by the endpoint.
    """
    session = gateway.session
    assert session is not None

    try:
        while True:
            await session.outbound_ready.wait()
            await _send_all(ws, gateway.drain_outbound(), send_lock)
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        # Socket already gone; the receive loop tears the session down
        log_event({
            "event_type": "WS_PUMP_ERROR",
            "session_id": session.session_id,
            "exception": type(exc).__name__,
            "message": str(exc),
        })


async def _stop_pump(pump: asyncio.Task[None] | None) -> None:
    if pump is None:
        return
    pump.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await pump


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
    send_lock: asyncio.Lock,
) -> None:
    await _send_all(ws, result.outbound_json, send_lock)


async def _send_all(
    ws: WebSocket,
    messages: tuple[dict[str, Any], ...],
    send_lock: asyncio.Lock,
) -> None:
    if not messages:
        return
    async with send_lock:
        for msg in messages:
            await ws.send_text(json.dumps(msg))
