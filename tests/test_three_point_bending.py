"""Three-point bending set-up and a short end-to-end run."""

import numpy as np
import pytest

from mpm_phasefield.config import SimulationConfig
from mpm_phasefield.material_point import RIGID
from mpm_phasefield.scenarios import BEAM_COLOR, ThreePointBendingGeometry, three_point_bending
from mpm_phasefield.solver import MPMPhaseFieldSolver


def test_setup_layout():
    cfg = SimulationConfig(verbose=False, write_vtk=False)
    grid, mesh, particles, bodies = three_point_bending(cfg)

    assert [b.name for b in bodies] == ["roller_left", "roller_right", "impactor"]
    assert np.allclose(bodies[2].velocity, [0.0, -cfg.impactor_velocity])
    assert np.allclose(bodies[0].velocity, 0.0)

    rigid = np.concatenate([b.indices for b in bodies])
    assert np.all(particles.role[rigid] == RIGID)
    beam = particles.deformable
    assert beam.size > 0
    assert np.all(particles.color[beam] == BEAM_COLOR)

    # everything starts inside the grid and the bottom edge is fixed
    assert np.all(grid.contains(particles.x))
    assert np.all(grid.fixed[grid.edge_nodes("bottom")])
    assert not np.any(grid.fixed[grid.edge_nodes("top")])

    # the notch leaves a gap under the impactor
    geom = ThreePointBendingGeometry()
    xmid = geom.pad_cells * grid.hx + 0.5 * geom.span
    y_notch_top = 2.0 * geom.roller_radius + geom.notch_depth_cells * grid.hy
    under = (np.abs(particles.x[beam, 0] - xmid) < 0.5 * grid.hx) & (particles.x[beam, 1] < y_notch_top)
    assert not np.any(under)

    # impactor sits on the beam centre line, above the beam
    imp = bodies[2].centroid(particles)
    assert imp[0] == pytest.approx(xmid, abs=grid.hx)
    assert np.min(particles.x[bodies[2].indices, 1]) > np.max(particles.x[beam, 1])

    assert mesh.n_elems == cfg.mesh_nx * cfg.mesh_ny


def test_default_geometry_matches_explicit_default():
    cfg = SimulationConfig(verbose=False, write_vtk=False)
    _, _, implicit, _ = three_point_bending(cfg)
    _, _, explicit, _ = three_point_bending(cfg, ThreePointBendingGeometry())
    _, _, padded, _ = three_point_bending(cfg, ThreePointBendingGeometry(pad_cells=1))

    assert np.array_equal(implicit.x, explicit.x)
    # a custom geometry does not leak into later default calls
    assert not np.array_equal(padded.x[:10], implicit.x[:10])
    _, _, again, _ = three_point_bending(cfg)
    assert np.array_equal(again.x, implicit.x)


@pytest.mark.slow
def test_short_run_is_finite():
    cfg = SimulationConfig(
        grid_nx=83, grid_ny=10, mesh_nx=83, mesh_ny=10,
        ppc=(2, 2), verbose=False, write_vtk=False,
    )
    grid, mesh, particles, bodies = three_point_bending(cfg, ThreePointBendingGeometry(pad_cells=1, notch_depth_cells=3.0))
    solver = MPMPhaseFieldSolver(cfg, grid, mesh, particles, bodies, track_energy=True)
    imp = bodies[2].indices
    y0 = particles.x[imp, 1].copy()

    n = 20
    for _ in range(n):
        solver.step()

    beam = particles.deformable
    assert np.all(np.isfinite(particles.x))
    assert np.all(np.isfinite(particles.stress[beam]))
    assert np.all((solver.phase_field >= 0.0) & (solver.phase_field <= 1.0))
    assert len(solver.energy) == n
    assert np.allclose(particles.x[imp, 1], y0 - cfg.impactor_velocity * n * solver.dt)
    # the impactor pushes the beam down
    assert particles.velocity[beam, 1].min() < 0.0
