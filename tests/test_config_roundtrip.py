"""
Test SimulationConfig serialization/deserialization round-trip.

Verifies that to_dict() -> from_dict() and the YAML/JSON files preserve all data.
"""

import math

import pytest

from mpm_phasefield.config import SimulationConfig, stable_time_step
from mpm_phasefield.grid import Grid


def custom_config():
    return SimulationConfig(
        young=30e9,
        poisson=0.2,
        l0=0.001,
        Gc=100.0,
        gravity=(0.0, -9.81),
        external_forces=True,
        ppc=(2, 2),
        grid_nx=40,
        grid_ny=10,
        out_of_domain="clamp",
        write_vtk=False,
    )


def test_dict_roundtrip():
    cfg = custom_config()
    cfg2 = SimulationConfig.from_dict(cfg.to_dict())
    assert cfg2 == cfg
    assert cfg2.gravity == (0.0, -9.81)
    assert cfg2.ppc == (2, 2)


def test_yaml_roundtrip(tmp_path):
    cfg = custom_config()
    path = tmp_path / "run.yaml"
    cfg.save_yaml(str(path))
    assert SimulationConfig.load_yaml(str(path)) == cfg


def test_json_roundtrip(tmp_path):
    cfg = custom_config()
    path = tmp_path / "run.json"
    cfg.save_json(str(path))
    assert SimulationConfig.load_json(str(path)) == cfg


def test_partial_yaml_uses_defaults(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text("t_end: 0.0005\nverbose: false\n")
    cfg = SimulationConfig.load_yaml(str(path))
    assert cfg.t_end == 0.0005
    assert cfg.verbose is False
    assert cfg.young == SimulationConfig().young


def test_unknown_key_rejected():
    with pytest.raises(ValueError):
        SimulationConfig.from_dict({"youngs_modulus": 1.0})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"poisson": 0.5},
        {"young": -1.0},
        {"k": 1.0},
        {"dt": 0.0},
        {"ppc": (0, 2)},
        {"out_of_domain": "wrap"},
        {"output_interval": 0},
        {"grid_nx": 0},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        SimulationConfig(**kwargs)


def test_aliases_and_mesh_defaults():
    cfg = SimulationConfig(out_of_domain="clip")
    assert cfg.out_of_domain == "clamp"
    assert cfg.mesh_lx == cfg.grid_lx
    assert cfg.mesh_ly == cfg.grid_ly


def test_stable_time_step():
    cfg = SimulationConfig(young=1e6, density=1000.0, dt_factor=0.2)
    grid = Grid(1.0, 0.5, 11, 11)
    assert stable_time_step(cfg, grid) == pytest.approx(0.2 * 0.05 / math.sqrt(1e3))

    cfg_dt = SimulationConfig(dt=1e-6)
    assert stable_time_step(cfg_dt, grid) == 1e-6


def test_default_time_step_of_benchmark():
    cfg = SimulationConfig()
    grid = Grid(cfg.grid_lx, cfg.grid_ly, cfg.grid_nx + 1, cfg.grid_ny + 1)
    c = math.sqrt(cfg.young / cfg.density)
    assert stable_time_step(cfg, grid) == pytest.approx(0.2 * min(grid.hx, grid.hy) / c)
