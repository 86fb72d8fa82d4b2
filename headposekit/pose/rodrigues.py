from __future__ import annotations
import math
import numpy as np

EPS_ANGLE = 1e-10

def rotation_vector_to_matrix(rvec) -> np.ndarray:
    """Axis-angle (3,) -> 3x3 rotation matrix (Rodrigues formula)."""
    rx, ry, rz = (float(v) for v in np.asarray(rvec, dtype=np.float64).ravel()[:3])
    theta = math.sqrt(rx*rx + ry*ry + rz*rz)
    if theta < EPS_ANGLE:
        return np.eye(3)

    kx, ky, kz = rx/theta, ry/theta, rz/theta
    c = math.cos(theta); s = math.sin(theta); t = 1.0 - c
    return np.array([
        [c + kx*kx*t,    kx*ky*t - kz*s, kx*kz*t + ky*s],
        [ky*kx*t + kz*s, c + ky*ky*t,    ky*kz*t - kx*s],
        [kz*kx*t - ky*s, kz*ky*t + kx*s, c + kz*kz*t   ],
    ], dtype=np.float64)

def rotation_matrix_to_vector(R) -> np.ndarray:
    """Inverse of rotation_vector_to_matrix; returns the rotation vector with angle in [0, pi]."""
    R = np.asarray(R, dtype=np.float64).reshape(3, 3)
    cos_t = np.clip((np.trace(R) - 1.0) / 2.0, -1.0, 1.0)
    theta = math.acos(cos_t)
    if theta < 1e-8:
        return np.zeros(3)

    if math.pi - theta > 1e-4:
        axis = np.array([R[2,1] - R[1,2], R[0,2] - R[2,0], R[1,0] - R[0,1]]) / (2.0 * math.sin(theta))
        return axis * theta

    # near pi the skew part vanishes; recover the axis from the symmetric part
    B = (R + np.eye(3)) / 2.0
    i = int(np.argmax(np.diag(B)))
    axis = B[:, i] / math.sqrt(max(B[i, i], 1e-12))
    axis /= np.linalg.norm(axis)
    # fix the sign ambiguity using whatever skew part is left
    skew = np.array([R[2,1] - R[1,2], R[0,2] - R[2,0], R[1,0] - R[0,1]])
    if float(skew @ axis) < 0:
        axis = -axis
    return axis * theta
