"""
connectivity.py — Connectivity state routes.

Routes:
  GET  /api/v1/connectivity         — current state
  POST /api/v1/connectivity         — report a transition ({"online": false})
  WS   /api/v1/connectivity/stream  — push every transition to the client

The client forwards its browser online/offline events to POST; every
rendering selector and the assistant react to the same monitor. The
WebSocket sends the current state on connect, then one "change" message
per real transition. Messages from the client are ignored.
"""

import asyncio
import contextlib
import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from surakshamap.core.runtime import Runtime, get_runtime

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/connectivity", tags=["connectivity"])


class ConnectivityState(BaseModel):
    online: bool


class ConnectivityChange(BaseModel):
    online: bool
    changed: bool


def _message(kind: str, online: bool) -> str:
    return json.dumps({
        "type":      kind,
        "online":    online,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    })


async def _forward_changes(websocket: WebSocket, queue: "asyncio.Queue[bool]") -> None:
    while True:
        online = await queue.get()
        await websocket.send_text(_message("change", online))


@router.get("", response_model=ConnectivityState)
async def get_connectivity(runtime: Runtime = Depends(get_runtime)):
    return ConnectivityState(online=runtime.monitor.online)


@router.post("", response_model=ConnectivityChange)
async def set_connectivity(payload: ConnectivityState, runtime: Runtime = Depends(get_runtime)):
    """Duplicate reports of the current state are accepted and change nothing."""
    changed = runtime.monitor.set_online(payload.online)
    return ConnectivityChange(online=runtime.monitor.online, changed=changed)


@router.websocket("/stream")
async def connectivity_stream(websocket: WebSocket, runtime: Runtime = Depends(get_runtime)):
    await websocket.accept()

    queue: asyncio.Queue[bool] = asyncio.Queue()
    unsubscribe = runtime.monitor.subscribe(queue.put_nowait)
    sender = None
    try:
        await websocket.send_text(_message("state", runtime.monitor.online))
        sender = asyncio.create_task(_forward_changes(websocket, queue))
        # Block on the client side so a disconnect is seen immediately.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Connectivity WebSocket client disconnected")
    except Exception as exc:
        logger.warning("Connectivity WebSocket error: %s", exc)
    finally:
        unsubscribe()
        if sender is not None:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await sender
                except Exception as exc:
                    logger.warning("Connectivity WebSocket sender failed: %s", exc)
