from __future__ import annotations
from dataclasses import dataclass, asdict
from pathlib import Path
import json
import numpy as np

from .rodrigues import rotation_vector_to_matrix

@dataclass
class CameraIntrinsics:
    fx: float; fy: float; cx: float; cy: float

    @property
    def K(self) -> np.ndarray:
        return np.array([[self.fx, 0, self.cx],
                         [0, self.fy, self.cy],
                         [0,      0,      1]], dtype=np.float64)

    @staticmethod
    def heuristic(width:int, height:int, focal_scale: float = 1.0) -> "CameraIntrinsics":
        # uncalibrated webcam: focal length ~ image width, principal point at centre
        f = focal_scale * width
        return CameraIntrinsics(fx=f, fy=f, cx=width/2, cy=height/2)

    @staticmethod
    def from_matrix(K) -> "CameraIntrinsics":
        K = np.asarray(K, dtype=np.float64).reshape(3, 3)
        return CameraIntrinsics(fx=float(K[0,0]), fy=float(K[1,1]), cx=float(K[0,2]), cy=float(K[1,2]))

def load_intrinsics(path: str|Path|None, width:int, height:int) -> CameraIntrinsics:
    if path and Path(path).exists():
        data = json.loads(Path(path).read_text())
        # either {fx, fy, cx, cy} or a calibration dump with a 3x3 "K" / "camera_matrix"
        K = data.get("K", data.get("camera_matrix")) if isinstance(data, dict) else data
        if K is not None:
            return CameraIntrinsics.from_matrix(K)
        return CameraIntrinsics(**data)
    return CameraIntrinsics.heuristic(width, height)

def save_intrinsics(path: str|Path, K: CameraIntrinsics):
    Path(path).write_text(json.dumps(asdict(K), indent=2))

def project_points(object_points, rvec, tvec, K) -> np.ndarray:
    """Pinhole projection of (N,3) points under pose (rvec, tvec); no distortion. Returns (N,2) pixels."""
    obj = np.asarray(object_points, dtype=np.float64).reshape(-1, 3)
    K = np.asarray(K, dtype=np.float64)
    R = rotation_vector_to_matrix(rvec)
    P = obj @ R.T + np.asarray(tvec, dtype=np.float64).reshape(1, 3)
    u = K[0,0] * P[:,0] / P[:,2] + K[0,2]
    v = K[1,1] * P[:,1] / P[:,2] + K[1,2]
    return np.stack([u, v], axis=1)

def back_project(u: float, v: float, depth: float, K) -> np.ndarray:
    """Camera-frame point at the given depth along the ray through pixel (u,v)."""
    K = np.asarray(K, dtype=np.float64)
    return np.array([(u - K[0,2]) * depth / K[0,0],
                     (v - K[1,2]) * depth / K[1,1],
                     depth], dtype=np.float64)
