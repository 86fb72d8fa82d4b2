from __future__ import annotations
import typer, json, asyncio, logging
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from pathlib import Path
from typing import Iterator, Optional
from .config import SolverConfig, load_config
from .io.frames import frames
from .pose.camera_model import CameraIntrinsics, load_intrinsics, save_intrinsics, project_points
from .pose.euler import euler_to_rotation_matrix
from .pose.headpose import MODEL_POINTS, estimate_head_pose
from .pose.landmarks import LandmarkError, select_key_landmarks
from .pose.rodrigues import rotation_matrix_to_vector
from .runtime.events import PoseEvent, ws_broadcast

app = typer.Typer(add_completion=False, help="HeadPoseKit CLI (hpk)")
err = Console(stderr=True)

@app.callback()
def main(log_level: str = typer.Option("WARNING", help="DEBUG, INFO, WARNING or ERROR")):
    logging.basicConfig(level=log_level.upper(), format="%(message)s",
                        handlers=[RichHandler(console=err, show_path=False)])

def _pose_events(source: str, cfg: SolverConfig, width:int, height:int,
                 cam: Optional[CameraIntrinsics]) -> Iterator[PoseEvent]:
    for f in frames(source):
        meta = f["meta"]
        if not f["landmarks"]:
            yield PoseEvent.no_face(frame=meta["index"], ts=meta["ts"])
            continue
        w = int(meta.get("width", width)); h = int(meta.get("height", height))
        pose = estimate_head_pose(select_key_landmarks(f["landmarks"]), w, h, config=cfg, intrinsics=cam)
        yield PoseEvent.from_pose(pose, frame=meta["index"], ts=meta["ts"])

@app.command()
def estimate(source: str = typer.Argument("-", help="JSON or JSON-lines landmark frames, '-' for stdin"),
             width: Optional[int] = None, height: Optional[int] = None,
             config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML solver config"),
             intrinsics: Optional[Path] = typer.Option(None, help="JSON intrinsics (default: width heuristic)"),
             ws: bool = typer.Option(False, help="also broadcast events over WebSocket"),
             host: str = "0.0.0.0", port: int = 8765):
    """
    Estimate pitch/yaw/roll for each landmark frame and print JSONL pose events.
    """
    cfg = load_config(config).updated(image_width=width, image_height=height)
    w, h = cfg.image_width, cfg.image_height
    cam = load_intrinsics(intrinsics, w, h) if intrinsics else None
    events = _pose_events(source, cfg, w, h, cam)

    async def producer(queue: "asyncio.Queue[Optional[str]]"):
        # frames may come from a live pipe; read them off the event loop
        while True:
            ev = await asyncio.to_thread(next, events, None)
            if ev is None: break
            line = ev.model_dump_json()
            typer.echo(line)
            await queue.put(line)
        await queue.put(None)

    async def stream():
        queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        bcast = asyncio.create_task(ws_broadcast(queue, host, port))
        await producer(queue)
        await bcast

    try:
        if ws:
            asyncio.run(stream())
        else:
            for ev in events:
                typer.echo(ev.model_dump_json())
    except LandmarkError as e:
        err.print(f"[red]Bad landmark input:[/red] {e}")
        raise typer.Exit(code=1)
    except ValueError as e:
        err.print(f"[red]Unreadable frame input:[/red] {e}")
        raise typer.Exit(code=1)

@app.command()
def synth(pitch: float = 0.0, yaw: float = 0.0, roll: float = 0.0, distance: float = 500.0,
          width: int = 640, height: int = 480):
    """
    Print normalized key landmarks for a synthetic head pose (degrees, distance in mm).
    """
    rvec = rotation_matrix_to_vector(euler_to_rotation_matrix(pitch, yaw, roll))
    K = CameraIntrinsics.heuristic(width, height).K
    px = project_points(MODEL_POINTS, rvec, [0.0, 0.0, distance], K)
    typer.echo(json.dumps([{"x": float(u/width), "y": float(v/height)} for u, v in px]))

@app.command("intrinsics")
def intrinsics_cmd(width: int = 640, height: int = 480, save: str = "intrinsics.json"):
    """
    Write the uncalibrated (focal = width) camera intrinsics to a JSON file.
    """
    K = CameraIntrinsics.heuristic(width, height)
    save_intrinsics(save, K)
    print("[green]Saved intrinsics[/green]", save)

if __name__ == "__main__":
    app()
