from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from ..config import SolverConfig
from .camera_model import back_project
from .linalg import solve6x6
from .rodrigues import rotation_vector_to_matrix, rotation_matrix_to_vector

log = logging.getLogger(__name__)

ZC_EPS = 1e-10      # keeps 1/Zc finite for points on the image plane
AFFINE_PASSES = 4   # perspective re-weighting passes of the affine initializer

@dataclass
class PnPSolution:
    rvec: np.ndarray
    tvec: np.ndarray
    error: float = float("nan")   # final sum of squared reprojection residuals (px^2)
    iterations: int = 0
    status: str = "max_iterations"

    @property
    def R(self) -> np.ndarray:
        return rotation_vector_to_matrix(self.rvec)

def _unpack_K(K) -> Tuple[float, float, float, float]:
    K = np.asarray(K, dtype=np.float64).reshape(3, 3)
    return float(K[0,0]), float(K[1,1]), float(K[0,2]), float(K[1,2])

def _as_points(object_points, image_points):
    obj = np.asarray(object_points, dtype=np.float64).reshape(-1, 3)
    img = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
    return obj, img

# ---------------------------------------------------------------- init

def _centroid_rotation(obj, img, c3, c2, tz, fx, fy) -> np.ndarray:
    # correlation of image offsets against object offsets; roll is not observable here
    dx = (img[:,0] - c2[0]) / fx
    dy = (img[:,1] - c2[1]) / fy
    sum_x = float(np.sum(dx * (obj[:,1] - c3[1])))
    sum_y = float(np.sum(dy * (obj[:,0] - c3[0])))
    ry = math.atan2(sum_y, tz) * 0.5
    rx = math.atan2(-sum_x, tz) * 0.5
    return np.array([rx, ry, 0.0])

def _affine_rotation(obj_c, offsets_c, fx, fy, eps) -> Optional[np.ndarray]:
    """Nearest rotation to the scaled-orthographic map obj_c -> offsets_c, or None if degenerate."""
    q = offsets_c / np.array([fx, fy])
    M, *_ = np.linalg.lstsq(obj_c, q, rcond=None)  # (3,2): columns ~ R[0]/Z, R[1]/Z
    r1, r2 = M[:,0], M[:,1]
    n1, n2 = np.linalg.norm(r1), np.linalg.norm(r2)
    if min(n1, n2) < eps:
        return None
    r1 = r1 / n1; r2 = r2 / n2
    r3 = np.cross(r1, r2)
    n3 = np.linalg.norm(r3)
    if n3 < eps:
        return None
    U, _, Vt = np.linalg.svd(np.vstack([r1, r2, r3 / n3]))
    R = U @ Vt
    if np.linalg.det(R) < 0:
        U[:, -1] *= -1
        R = U @ Vt
    return R

def translation_given_rotation(obj, img, R, fx, fy, cx, cy) -> np.ndarray:
    """Least-squares translation for a fixed rotation; the pinhole equations are linear in t."""
    Xr = obj @ np.asarray(R).T
    du = img[:,0] - cx; dv = img[:,1] - cy
    n = obj.shape[0]
    A = np.zeros((2*n, 3)); b = np.zeros(2*n)
    A[0::2, 0] = fx; A[0::2, 2] = -du; b[0::2] = du * Xr[:,2] - fx * Xr[:,0]
    A[1::2, 1] = fy; A[1::2, 2] = -dv; b[1::2] = dv * Xr[:,2] - fy * Xr[:,1]
    t, *_ = np.linalg.lstsq(A, b, rcond=None)
    return t

def _affine_pose(obj, img, tz, fx, fy, cx, cy, eps):
    obj_c = obj - obj.mean(axis=0)
    offsets = img - np.array([cx, cy])
    depths = np.full(obj.shape[0], tz)
    pose = None
    for _ in range(AFFINE_PASSES):
        # rescale each offset by its depth so the projection becomes affine in the object point
        w = offsets * (depths / depths.mean())[:, None]
        R = _affine_rotation(obj_c, w - w.mean(axis=0), fx, fy, eps)
        if R is None:
            break
        t = translation_given_rotation(obj, img, R, fx, fy, cx, cy)
        depths = (obj @ R.T + t)[:, 2]
        if depths.min() <= eps:
            break
        pose = (rotation_matrix_to_vector(R), t)
    return pose

def initialize_pose(object_points, image_points, camera_matrix, config: SolverConfig|None=None):
    """Closed-form starting pose (rvec, tvec). Approximate: it only has to land LM in its basin."""
    cfg = config or SolverConfig()
    obj, img = _as_points(object_points, image_points)
    fx, fy, cx, cy = _unpack_K(camera_matrix)

    c3 = obj.mean(axis=0)
    c2 = img.mean(axis=0)
    scale3d = float(np.mean(np.linalg.norm(obj[:, :2] - c3[:2], axis=1)))
    scale2d = float(np.mean(np.linalg.norm(img - c2, axis=1)))
    tz = fx * scale3d / (scale2d + cfg.depth_eps)

    if cfg.init_method == "affine":
        pose = _affine_pose(obj, img, tz, fx, fy, cx, cy, cfg.depth_eps)
        if pose is not None:
            return pose
        log.debug("affine init degenerate (2D spread %.3g px); using centroid heuristic", scale2d)

    rvec = _centroid_rotation(obj, img, c3, c2, tz, fx, fy)
    tvec = back_project(c2[0], c2[1], tz, camera_matrix)
    return rvec, tvec

# ---------------------------------------------------------------- refine

def compute_jacobian(rvec, tvec, R, object_points, image_points, fx, fy, cx, cy):
    """
    Reprojection residuals (2n,) as estimate - observed, interleaved u,v per
    point, and their (2n,6) Jacobian w.r.t. [rvec, tvec].

    Rotation columns use the instantaneous-rotation term d(RX)/dr_k ~ e_k x RX
    rather than the exact Rodrigues derivative.
    """
    obj, img = _as_points(object_points, image_points)
    n = obj.shape[0]
    Xr = obj @ np.asarray(R, dtype=np.float64).T
    P = Xr + np.asarray(tvec, dtype=np.float64).reshape(1, 3)

    inv_z = 1.0 / (P[:,2] + ZC_EPS)
    inv_z2 = inv_z * inv_z
    u = fx * P[:,0] * inv_z + cx
    v = fy * P[:,1] * inv_z + cy

    residuals = np.empty(2*n)
    residuals[0::2] = u - img[:,0]
    residuals[1::2] = v - img[:,1]

    # d(u,v)/d(Xc,Yc,Zc): (n,2,3)
    dproj = np.zeros((n, 2, 3))
    dproj[:,0,0] = fx * inv_z
    dproj[:,0,2] = -fx * P[:,0] * inv_z2
    dproj[:,1,1] = fy * inv_z
    dproj[:,1,2] = -fy * P[:,1] * inv_z2

    # dP/dr_k = e_k x Xr, i.e. -[Xr]x: (n,3,3)
    ax, ay, az = Xr[:,0], Xr[:,1], Xr[:,2]
    zero = np.zeros(n)
    dP_dr = np.stack([
        np.stack([zero,  az, -ay], axis=1),
        np.stack([-az, zero,  ax], axis=1),
        np.stack([ ay, -ax, zero], axis=1),
    ], axis=1)

    J = np.concatenate([dproj @ dP_dr, dproj], axis=2).reshape(2*n, 6)
    return residuals, J

def reprojection_error(rvec, tvec, object_points, image_points, camera_matrix) -> float:
    fx, fy, cx, cy = _unpack_K(camera_matrix)
    R = rotation_vector_to_matrix(rvec)
    residuals, _ = compute_jacobian(rvec, tvec, R, object_points, image_points, fx, fy, cx, cy)
    return float(residuals @ residuals)

def refine_pose(rvec, tvec, object_points, image_points, camera_matrix, config: SolverConfig|None=None) -> PnPSolution:
    """Levenberg-Marquardt on the 6 pose parameters. Best effort: always returns a pose."""
    cfg = config or SolverConfig()
    obj, img = _as_points(object_points, image_points)
    fx, fy, cx, cy = _unpack_K(camera_matrix)
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3).copy()
    tvec = np.asarray(tvec, dtype=np.float64).reshape(3).copy()

    lam = step_lam = cfg.initial_damping
    prev_error = math.inf
    best = (rvec.copy(), tvec.copy())
    status = "max_iterations"
    iterations = 0

    for it in range(cfg.max_iterations):
        R = rotation_vector_to_matrix(rvec)
        residuals, J = compute_jacobian(rvec, tvec, R, obj, img, fx, fy, cx, cy)
        error = float(residuals @ residuals)
        log.debug("lm iter=%d error=%.6g lambda=%.3g", it, error, lam)

        if error < cfg.error_threshold:
            status = "converged"; break
        if abs(prev_error - error) < cfg.error_change_tol:
            status = "stalled"; break

        if cfg.rollback_failed_steps and error >= prev_error:
            # reject the last step; retry from the last accepted point, damped harder than before
            rvec, tvec = best[0].copy(), best[1].copy()
            R = rotation_vector_to_matrix(rvec)
            residuals, J = compute_jacobian(rvec, tvec, R, obj, img, fx, fy, cx, cy)
            error = prev_error
            lam = step_lam * cfg.damping_increase

        JtJ = J.T @ J
        Jtr = J.T @ residuals
        JtJ[np.diag_indices(6)] *= (1.0 + lam)
        step_lam = lam

        delta = solve6x6(JtJ, Jtr, pivot_eps=cfg.pivot_eps)
        if delta is None:
            log.debug("singular normal equations at iter %d; keeping current pose", it)
            status = "singular"; break

        step = float(np.linalg.norm(delta))
        if step > cfg.step_clamp:
            delta *= cfg.step_rescale / step

        if error < prev_error:
            lam *= cfg.damping_decrease
            prev_error = error
            best = (rvec.copy(), tvec.copy())
        elif not cfg.rollback_failed_steps:
            lam *= cfg.damping_increase

        rvec = rvec - delta[:3]
        tvec = tvec - delta[3:]
        iterations += 1

    final_error = reprojection_error(rvec, tvec, obj, img, camera_matrix)
    if cfg.rollback_failed_steps and final_error > prev_error:
        rvec, tvec = best
        final_error = prev_error
    if status == "max_iterations":
        log.debug("lm hit %d iterations, error=%.6g", cfg.max_iterations, final_error)
    return PnPSolution(rvec=rvec, tvec=tvec, error=final_error, iterations=iterations, status=status)

def solve_pnp(object_points, image_points, camera_matrix, config: SolverConfig|None=None) -> PnPSolution:
    """
    Pose of a rigid 6-point model from its image projections (pinhole, no distortion).
    object_points: (6,3) model points, image_points: (6,2) pixels, camera_matrix: (3,3).
    """
    cfg = config or SolverConfig()
    obj, img = _as_points(object_points, image_points)
    rvec, tvec = initialize_pose(obj, img, camera_matrix, cfg)
    return refine_pose(rvec, tvec, obj, img, camera_matrix, cfg)
