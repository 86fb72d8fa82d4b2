from __future__ import annotations
from collections.abc import Mapping
import numpy as np

# MediaPipe FaceMesh indices, in the order of MODEL_POINTS
KEY_LANDMARKS = {
  "nose_tip": 1,
  "chin": 152,
  "left_eye_outer": 130,
  "left_mouth_corner": 57,
  "right_mouth_corner": 287,
  "right_eye_outer": 359,
}
KEY_LANDMARK_INDICES = list(KEY_LANDMARKS.values())
NUM_KEY_LANDMARKS = len(KEY_LANDMARK_INDICES)
FACE_MESH_MIN_POINTS = 468  # 478 with refined iris landmarks

class LandmarkError(ValueError):
    pass

def _xy(lm):
    if hasattr(lm, "x") and hasattr(lm, "y"):
        return float(lm.x), float(lm.y)
    if isinstance(lm, Mapping):
        try: return float(lm["x"]), float(lm["y"])
        except KeyError as e: raise LandmarkError(f"landmark mapping missing key {e}") from None
    try:
        return float(lm[0]), float(lm[1])
    except (TypeError, IndexError, ValueError):
        raise LandmarkError(f"cannot read (x, y) from landmark {lm!r}") from None

def to_array(landmarks) -> np.ndarray:
    """Landmarks as objects with .x/.y, {"x","y"} mappings or (N,2+) rows -> (N,2) float array."""
    if landmarks is None:
        return np.zeros((0, 2))
    if isinstance(landmarks, np.ndarray):
        if landmarks.ndim != 2 or landmarks.shape[1] < 2:
            raise LandmarkError(f"expected an (N,2) array, got shape {landmarks.shape}")
        return landmarks[:, :2].astype(np.float64)
    return np.array([_xy(lm) for lm in landmarks], dtype=np.float64).reshape(-1, 2)

def select_key_landmarks(landmarks) -> np.ndarray:
    """Six key points, either passed through or picked from a full face mesh."""
    pts = to_array(landmarks)
    if pts.shape[0] == NUM_KEY_LANDMARKS:
        return pts
    if pts.shape[0] >= FACE_MESH_MIN_POINTS:
        return pts[KEY_LANDMARK_INDICES]
    raise LandmarkError(f"expected {NUM_KEY_LANDMARKS} key landmarks or a face mesh "
                        f"of >= {FACE_MESH_MIN_POINTS} points, got {pts.shape[0]}")

def to_pixels(pts_norm, width: int, height: int) -> np.ndarray:
    pts = np.array(pts_norm, dtype=np.float64).reshape(-1, 2)
    pts[:,0] *= width
    pts[:,1] *= height
    return pts
