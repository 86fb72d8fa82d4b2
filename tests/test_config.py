import pytest
from headposekit.config import SolverConfig, config_from_dict, load_config

def test_defaults():
    cfg = load_config(None)
    assert cfg.max_iterations == 30 and cfg.error_threshold == 0.01
    assert cfg.step_clamp == 1.0 and cfg.step_rescale == 0.5
    assert cfg.rollback_failed_steps is False
    assert (cfg.image_width, cfg.image_height) == (640, 480)

def test_yaml(tmp_path):
    p = tmp_path / "solver.yaml"
    p.write_text("solver:\n  max_iterations: 50\n  init_method: centroid\nimage_width: 1280\n")
    cfg = load_config(p)
    assert cfg.max_iterations == 50 and cfg.init_method == "centroid"
    assert cfg.image_width == 1280

def test_empty_yaml(tmp_path):
    p = tmp_path / "empty.yaml"; p.write_text("")
    assert load_config(p) == SolverConfig()

def test_unknown_key():
    with pytest.raises(ValueError):
        config_from_dict({"max_iter": 10})

def test_bad_init_method():
    with pytest.raises(ValueError):
        SolverConfig(init_method="dlt")

def test_updated_ignores_none():
    cfg = SolverConfig().updated(image_width=None, image_height=720)
    assert cfg.image_width == 640 and cfg.image_height == 720
