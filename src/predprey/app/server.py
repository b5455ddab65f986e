from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Any, Callable, Dict, Optional, Set

from fastapi import Body, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.agent import Agent, Species
from ..sim.core.clock import SimulationClock
from ..sim.core.config import SimulationConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    """Owns the clock and feeds it the measured wall-clock delta of each loop iteration."""

    def __init__(
        self,
        config: SimulationConfig,
        broadcast_interval: int = 1,
        time_source: Callable[[], float] = perf_counter,
    ):
        self.config = config
        self.clock = SimulationClock(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None
        self._time_source = time_source

    @property
    def tick(self) -> int:
        return self.clock.world.tick

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._loop())
            self._loop_task.add_done_callback(self._on_loop_done)
        self.clock.set_paused(False)

    async def pause(self) -> None:
        async with self._lock:
            self.clock.set_paused(True)

    async def resume(self) -> None:
        async with self._lock:
            self.clock.set_paused(False)

    async def toggle_pause(self) -> bool:
        async with self._lock:
            return self.clock.toggle_pause()

    async def set_speed(self, factor: float) -> float:
        async with self._lock:
            return self.clock.set_speed_factor(factor)

    async def spawn(self, species: Species) -> Agent:
        async with self._lock:
            agent = self.clock.spawn(species)
        await self._broadcast_snapshot()
        return agent

    async def reset(self) -> None:
        async with self._lock:
            self.clock.reset()
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def _loop(self) -> None:
        frame_time = self.config.frame_time
        last = self._time_source()
        while True:
            await asyncio.sleep(frame_time)
            now = self._time_source()
            # sleep overshoot and tick work count as elapsed time
            delta = now - last
            last = now
            async with self._lock:
                metrics = self.clock.tick(delta)
            if metrics is not None and metrics.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Simulation loop stopped", exc_info=error)

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.clock.snapshot()
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "simulation_time": snapshot.simulation_time,
                "is_paused": snapshot.is_paused,
                "speed_factor": snapshot.speed_factor,
                "metrics": asdict(snapshot.metrics),
                "prey": snapshot.prey,
                "predators": snapshot.predators,
                "world": asdict(snapshot.world),
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
            logger.info("Dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Predator-Prey Simulation")
controller = SimulationController(SimulationConfig())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.clock.snapshot()
    return JSONResponse(
        {
            "paused": snapshot.is_paused,
            "tick": snapshot.tick,
            "simulation_time": snapshot.simulation_time,
            "speed_factor": snapshot.speed_factor,
            "prey": len(snapshot.prey),
            "predators": len(snapshot.predators),
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.post("/api/control/pause")
async def pause_simulation() -> JSONResponse:
    await controller.pause()
    return JSONResponse({"paused": True})


@app.post("/api/control/resume")
async def resume_simulation() -> JSONResponse:
    await controller.resume()
    return JSONResponse({"paused": False})


@app.post("/api/control/toggle")
async def toggle_simulation() -> JSONResponse:
    paused = await controller.toggle_pause()
    return JSONResponse({"paused": paused})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"paused": controller.clock.is_paused, "tick": controller.tick})


def _parse_speed_factor(payload: Any) -> Optional[float]:
    if not isinstance(payload, dict):
        return None
    try:
        return float(payload.get("factor", 1.0))
    except (TypeError, ValueError):
        return None


@app.post("/api/control/speed")
async def set_speed(payload: Any = Body(...)) -> JSONResponse:
    factor = _parse_speed_factor(payload)
    if factor is None:
        return JSONResponse({"error": "body must be an object with a numeric factor"}, status_code=400)
    return JSONResponse({"factor": await controller.set_speed(factor)})


@app.post("/api/spawn/{species}")
async def spawn_agent(species: str) -> JSONResponse:
    try:
        kind = Species(species)
    except ValueError:
        return JSONResponse({"error": f"Unknown species: {species}"}, status_code=400)
    agent = await controller.spawn(kind)
    return JSONResponse(controller.clock.agent_payload(agent))


@app.get("/api/agents/{agent_id}")
async def agent_detail(agent_id: int) -> JSONResponse:
    agent = controller.clock.find_agent(agent_id)
    if agent is None:
        return JSONResponse({"error": f"No agent with id {agent_id}"}, status_code=404)
    return JSONResponse(controller.clock.agent_payload(agent))


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
