import numpy as np
import pytest

from mpm_phasefield.generation import assign_material, circle, notched_rectangle, rectangle
from mpm_phasefield.grid import Grid
from mpm_phasefield.linear_elastic import shear_bulk_moduli


@pytest.fixture
def grid():
    return Grid(1.0, 1.0, 9, 9)  # h = 0.125


def test_rectangle_fills_whole_cells(grid):
    p = rectangle(grid, [[0.0, 0.0], [0.5, 0.25]], ppc=(2, 2))
    assert len(p) == 4 * 2 * 4
    assert p.volume0.sum() == pytest.approx(0.125)
    assert np.allclose(p.volume, p.volume0)
    assert np.all(p.x[:, 0] < 0.5) and np.all(p.x[:, 1] < 0.25)


def test_notch_removes_particles(grid):
    box = [[0.0, 0.0], [0.5, 0.25]]
    notch = [[0.125, 0.0], [0.25, 0.125]]
    p = notched_rectangle(grid, box, notch, ppc=(2, 2))
    assert len(p) == 32 - 4
    assert p.volume0.sum() == pytest.approx(0.125 - 0.125 ** 2)
    in_notch = (p.x[:, 0] > 0.125) & (p.x[:, 0] < 0.25) & (p.x[:, 1] < 0.125)
    assert not np.any(in_notch)


def test_circle_area(grid):
    r = 0.25
    p = circle(grid, [0.5, 0.5], r, ppc=(4, 4))
    assert np.all(np.linalg.norm(p.x - 0.5, axis=1) <= r)
    assert p.volume0.sum() == pytest.approx(np.pi * r * r, rel=0.05)


def test_circle_rejects_bad_radius(grid):
    with pytest.raises(ValueError):
        circle(grid, [0.5, 0.5], 0.0)


def test_assign_material(grid):
    p = rectangle(grid, [[0.0, 0.0], [0.25, 0.25]], ppc=(2, 2))
    assign_material(p, 2400.0, 30e9, 0.2, velocity=(0.0, -1.0), color=3.0)
    shear, bulk = shear_bulk_moduli(30e9, 0.2)
    assert np.allclose(p.mass, 2400.0 * p.volume0)
    assert np.allclose(p.shear, shear)
    assert np.allclose(p.bulk, bulk)
    assert np.allclose(p.velocity, [0.0, -1.0])
    assert np.all(p.color == 3.0)
    assert np.allclose(p.phase, 1.0)
    assert np.allclose(p.F, np.eye(2))
