from __future__ import annotations
import yaml
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

INIT_METHODS = ("affine", "centroid")

@dataclass(frozen=True)
class SolverConfig:
    """
    Tuning constants for the 6-point PnP solve. The LM constants (30
    iterations, damping 1e-3 with x0.1/x10, the 1e-8 and 0.01 stopping
    thresholds, the unit-norm step clamp) and the 640x480 default image are
    the original ones. Two defaults differ: init_method is "affine" (the
    centroid heuristic is still available) and failed steps are kept unless
    rollback_failed_steps is set. Thresholds are in pixel^2 and do not adapt
    to image resolution.
    """
    max_iterations: int = 30
    initial_damping: float = 1e-3
    damping_decrease: float = 0.1
    damping_increase: float = 10.0
    error_change_tol: float = 1e-8
    error_threshold: float = 0.01
    step_clamp: float = 1.0
    step_rescale: float = 0.5
    pivot_eps: float = 1e-10
    depth_eps: float = 1e-6
    init_method: str = "affine"
    rollback_failed_steps: bool = False
    image_width: int = 640
    image_height: int = 480

    def __post_init__(self):
        if self.init_method not in INIT_METHODS:
            raise ValueError(f"init_method must be one of {INIT_METHODS}, got {self.init_method!r}")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")

    def updated(self, **overrides) -> "SolverConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

def config_from_dict(cfg: Optional[Dict[str, Any]]) -> SolverConfig:
    cfg = dict(cfg or {})
    # allow either a flat mapping or one nested under "solver"
    if isinstance(cfg.get("solver"), dict):
        cfg = {**{k: v for k, v in cfg.items() if k != "solver"}, **cfg["solver"]}
    known = {f.name for f in fields(SolverConfig)}
    unknown = sorted(set(cfg) - known)
    if unknown:
        raise ValueError(f"unknown solver config keys: {', '.join(unknown)}")
    return SolverConfig(**cfg)

def load_config(path: str|Path|None) -> SolverConfig:
    if not path:
        return SolverConfig()
    with open(path, "r") as f: cfg = yaml.safe_load(f)
    return config_from_dict(cfg)
