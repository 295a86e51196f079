"""Smoke tests for the example runner (argument and config handling)."""

import os

import pytest

from examples.run_three_point_bending import _parse_args, load_config
from mpm_phasefield.config import SimulationConfig


EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")


def test_bundled_yaml_matches_defaults():
    args = _parse_args(["--config", os.path.join(EXAMPLES_DIR, "three_point_bending.yaml")])
    assert load_config(args) == SimulationConfig()


def test_cli_overrides(tmp_path):
    args = _parse_args([
        "--t-end", "2e-6",
        "--output-interval", "5",
        "--output-dir", str(tmp_path),
        "--no-vtk",
        "--quiet",
    ])
    cfg = load_config(args)
    assert cfg.t_end == pytest.approx(2e-6)
    assert cfg.output_interval == 5
    assert cfg.output_dir == str(tmp_path)
    assert cfg.write_vtk is False
    assert cfg.verbose is False


def test_json_config(tmp_path):
    path = tmp_path / "cfg.json"
    SimulationConfig(l0=0.001).save_json(str(path))
    cfg = load_config(_parse_args(["--config", str(path)]))
    assert cfg.l0 == 0.001
