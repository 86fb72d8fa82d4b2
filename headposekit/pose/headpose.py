from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Optional
import numpy as np

from ..config import SolverConfig
from .camera_model import CameraIntrinsics
from .euler import rotation_matrix_to_euler
from .landmarks import LandmarkError, NUM_KEY_LANDMARKS, to_array, to_pixels
from .pnp import solve_pnp
from .rodrigues import rotation_vector_to_matrix

log = logging.getLogger(__name__)

# 3D face template (mm), camera-aligned: x right, y down, z away from the camera.
# An upright face looking straight at the camera has R = I.
MODEL_POINTS = np.array([
  [  0.0,   0.0,  0.0],  # nose_tip
  [  0.0,  63.6, 12.5],  # chin
  [-43.3, -32.7, 26.0],  # left_eye_outer
  [-28.9,  28.9, 24.1],  # left_mouth_corner
  [ 28.9,  28.9, 24.1],  # right_mouth_corner
  [ 43.3, -32.7, 26.0],  # right_eye_outer
], dtype=np.float64)
MODEL_POINTS.setflags(write=False)

@dataclass
class HeadPose:
    pitch: float
    yaw: float
    roll: float
    rvec: np.ndarray
    tvec: np.ndarray
    error: float
    iterations: int
    status: str

    @property
    def rotation(self) -> Dict[str, float]:
        return {"pitch": self.pitch, "yaw": self.yaw, "roll": self.roll}

def estimate_head_pose(landmarks, image_width: Optional[int]=None, image_height: Optional[int]=None,
                       config: SolverConfig|None=None, intrinsics: CameraIntrinsics|None=None) -> HeadPose:
    """
    landmarks: 6 normalized [0,1] points in MODEL_POINTS order (nose tip, chin,
    left eye outer, left mouth corner, right mouth corner, right eye outer).
    Image size defaults to the config's (640x480). Returns Euler angles in degrees.
    """
    cfg = config or SolverConfig()
    w = image_width or cfg.image_width
    h = image_height or cfg.image_height

    pts = to_array(landmarks)
    if pts.shape[0] != NUM_KEY_LANDMARKS:
        raise LandmarkError(f"expected {NUM_KEY_LANDMARKS} landmarks, got {pts.shape[0]}")
    img_pts = to_pixels(pts, w, h)

    cam = intrinsics or CameraIntrinsics.heuristic(w, h)
    sol = solve_pnp(MODEL_POINTS, img_pts, cam.K, cfg)
    R = rotation_vector_to_matrix(sol.rvec)
    pitch, yaw, roll = rotation_matrix_to_euler(R)
    log.debug("head pose pitch=%.2f yaw=%.2f roll=%.2f (%s, %d iters, err=%.4g)",
              pitch, yaw, roll, sol.status, sol.iterations, sol.error)
    return HeadPose(pitch=pitch, yaw=yaw, roll=roll, rvec=sol.rvec, tvec=sol.tvec,
                    error=sol.error, iterations=sol.iterations, status=sol.status)
