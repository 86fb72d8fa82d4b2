from __future__ import annotations
import math
import numpy as np

GIMBAL_EPS = 1e-6

def rotation_matrix_to_euler(R) -> tuple[float, float, float]:
    """3x3 rotation -> (pitch, yaw, roll) in degrees, for R = Rz(roll) @ Ry(yaw) @ Rx(pitch)."""
    R = np.asarray(R, dtype=np.float64).reshape(3, 3)
    sy = math.sqrt(R[0,0]**2 + R[1,0]**2)

    if sy > GIMBAL_EPS:
        pitch = math.atan2(R[2,1], R[2,2])  # about X, nodding
        yaw   = math.atan2(-R[2,0], sy)     # about Y, shaking head
        roll  = math.atan2(R[1,0], R[0,0])  # about Z, ear to shoulder
    else:
        # gimbal lock: roll folds into pitch and is reported as zero
        pitch = math.atan2(-R[1,2], R[1,1])
        yaw   = math.atan2(-R[2,0], sy)
        roll  = 0.0

    return math.degrees(pitch), math.degrees(yaw), math.degrees(roll)

def euler_to_rotation_matrix(pitch: float, yaw: float, roll: float) -> np.ndarray:
    a, b, g = math.radians(pitch), math.radians(yaw), math.radians(roll)
    Rx = np.array([[1, 0, 0], [0, math.cos(a), -math.sin(a)], [0, math.sin(a), math.cos(a)]])
    Ry = np.array([[math.cos(b), 0, math.sin(b)], [0, 1, 0], [-math.sin(b), 0, math.cos(b)]])
    Rz = np.array([[math.cos(g), -math.sin(g), 0], [math.sin(g), math.cos(g), 0], [0, 0, 1]])
    return Rz @ Ry @ Rx
