import json
from typer.testing import CliRunner
from headposekit.cli import app

runner = CliRunner()

def _events(result):
    return [json.loads(l) for l in result.stdout.splitlines() if l.startswith("{")]

def _synth(*args):
    res = runner.invoke(app, ["synth", *args])
    assert res.exit_code == 0, res.output
    return json.loads(res.stdout.strip().splitlines()[-1])

def test_synth_prints_six_landmarks():
    lms = _synth("--yaw", "15")
    assert len(lms) == 6 and all(0.0 < lm["x"] < 1.0 for lm in lms)

def test_estimate_jsonl_file(tmp_path):
    p = tmp_path / "frames.jsonl"
    p.write_text(json.dumps(_synth("--yaw", "25")) + "\n" + "null\n")
    res = runner.invoke(app, ["estimate", str(p)])
    assert res.exit_code == 0, res.output
    evs = _events(res)
    assert [e["face_found"] for e in evs] == [True, False]
    assert abs(evs[0]["yaw"] - 25) < 2.0
    assert evs[1]["yaw"] is None and evs[1]["frame"] == 1

def test_estimate_stdin_with_frame_meta():
    frame = {"landmarks": _synth("--pitch=-10", "--width", "1280", "--height", "720"),
             "width": 1280, "height": 720}
    res = runner.invoke(app, ["estimate", "-"], input=json.dumps(frame, indent=2))
    assert res.exit_code == 0, res.output
    (ev,) = _events(res)
    assert abs(ev["pitch"] + 10) < 2.0

def test_estimate_with_config(tmp_path):
    cfg = tmp_path / "solver.yaml"
    cfg.write_text("solver:\n  max_iterations: 0\n")
    p = tmp_path / "one.json"; p.write_text(json.dumps(_synth()))
    res = runner.invoke(app, ["estimate", str(p), "--config", str(cfg)])
    assert res.exit_code == 0, res.output
    assert _events(res)[0]["iterations"] == 0

def test_estimate_rejects_bad_landmarks(tmp_path):
    p = tmp_path / "bad.json"; p.write_text(json.dumps(_synth()[:3]))
    res = runner.invoke(app, ["estimate", str(p)])
    assert res.exit_code == 1

def test_intrinsics_command(tmp_path):
    out = tmp_path / "cam.json"
    res = runner.invoke(app, ["intrinsics", "--width", "800", "--height", "600", "--save", str(out)])
    assert res.exit_code == 0, res.output
    assert json.loads(out.read_text()) == {"fx": 800.0, "fy": 800.0, "cx": 400.0, "cy": 300.0}

def test_estimate_with_matrix_intrinsics(tmp_path):
    cam = tmp_path / "calib.json"
    cam.write_text(json.dumps({"K": [[640, 0, 320], [0, 640, 240], [0, 0, 1]]}))
    p = tmp_path / "one.json"; p.write_text(json.dumps(_synth("--yaw", "-20")))
    res = runner.invoke(app, ["estimate", str(p), "--intrinsics", str(cam)])
    assert res.exit_code == 0, res.output
    assert abs(_events(res)[0]["yaw"] + 20) < 2.0
