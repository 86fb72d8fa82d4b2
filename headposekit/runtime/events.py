from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Literal
import asyncio, logging, time, websockets

log = logging.getLogger(__name__)

class PoseEvent(BaseModel):
    ts: float = Field(default_factory=lambda: time.time())
    frame: int = 0
    face_found: bool = True
    pitch: Optional[float] = None
    yaw: Optional[float] = None
    roll: Optional[float] = None
    error: Optional[float] = None
    iterations: int = 0
    status: Optional[Literal["converged","stalled","singular","max_iterations"]] = None

    @classmethod
    def from_pose(cls, pose, frame:int=0, ts: Optional[float]=None) -> "PoseEvent":
        ev = cls(frame=frame, **pose.rotation, error=pose.error, iterations=pose.iterations, status=pose.status)
        if ts is not None: ev.ts = ts
        return ev

    @classmethod
    def no_face(cls, frame:int=0, ts: Optional[float]=None) -> "PoseEvent":
        ev = cls(frame=frame, face_found=False)
        if ts is not None: ev.ts = ts
        return ev

async def ws_broadcast(queue: "asyncio.Queue[Optional[str]]", host="0.0.0.0", port=8765):
    """Fan out queued JSON lines to every connected client; a None item stops the server."""
    clients=set()
    async def handler(websocket):
        clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            clients.discard(websocket)
    async with websockets.serve(handler, host, port):
        log.info("broadcasting pose events on ws://%s:%d", host, port)
        while True:
            msg = await queue.get()
            if msg is None: break
            if clients:
                await asyncio.gather(*[c.send(msg) for c in list(clients)], return_exceptions=True)
