from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import FlockingParams, SimulationConfig
from ..sim.core.world import World
from ..sim.utils.math3d import _as_vector

logger = logging.getLogger(__name__)

# Unacknowledged snapshots kept for (re)sending; older ones are dropped.
SNAPSHOT_QUEUE_LIMIT = 120


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


def _params_payload(params: FlockingParams) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for item in fields(params):
        value = getattr(params, item.name)
        if item.name == "steering_targets":
            value = [[t.x, t.y, t.z] for t in value]
        elif item.name == "collision_center":
            value = [value.x, value.y, value.z]
        elif item.name in {"separation_type", "steering_target_type"}:
            value = value.value
        payload[item.name] = value
    return payload


class SimulationController:
    """Runs the world on an asyncio loop and is the only writer between steps."""

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=SNAPSHOT_QUEUE_LIMIT)
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
            logger.info("Simulation loop started")
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def update_params(self, values: Dict[str, Any]) -> Dict[str, Any]:
        # Taking the step lock keeps edits between steps.
        async with self._lock:
            self.world.flock.params.update(values)
            return _params_payload(self.world.flock.params)

    async def add_boid(self) -> Dict[str, Any]:
        async with self._lock:
            boid = self.world.add_boid()
            return {"id": boid.id, "population": len(self.world.boids)}

    async def set_target(self, position: Any) -> list[float]:
        target = _as_vector(position)
        async with self._lock:
            self.world.flock.params.steering_targets = [target]
        return [target.x, target.y, target.z]

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._lock:
                self.world.step(self.tick)
                self.tick += 1
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics) if snapshot.metrics is not None else None,
                "boids": snapshot.boids,
                "obstacle": asdict(snapshot.obstacle),
                "targets": snapshot.targets,
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Flocking Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.world.metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": len(controller.world.boids),
            "metrics": asdict(metrics) if metrics is not None else None,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.get("/api/params")
async def get_params() -> JSONResponse:
    return JSONResponse(_params_payload(controller.world.flock.params))


@app.patch("/api/params")
async def patch_params(payload: dict) -> JSONResponse:
    try:
        updated = await controller.update_params(payload)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return JSONResponse(updated)


@app.post("/api/boids")
async def add_boid() -> JSONResponse:
    return JSONResponse(await controller.add_boid())


@app.post("/api/target")
async def set_target(payload: dict) -> JSONResponse:
    try:
        target = await controller.set_target(payload.get("position"))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return JSONResponse({"target": target})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
