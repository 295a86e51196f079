"""P2G / G2P transfers and the nodal update."""

import numpy as np
import pytest

from mpm_phasefield.grid import Grid, OutOfDomainError
from mpm_phasefield.particles import ParticleStore
from mpm_phasefield.transfer import grid_to_particles, particles_to_grid, update_grid_momentum


def make_cloud(rng, n=40, grid=None):
    grid = grid or Grid(1.0, 1.0, 9, 9)
    x = rng.uniform(0.1, 0.9, size=(n, 2))
    p = ParticleStore.from_positions(x, np.full(n, 1e-3))
    p.mass[:] = rng.uniform(0.5, 2.0, size=n)
    p.velocity[:] = rng.normal(size=(n, 2))
    return grid, p


def cell_centres(grid, ppc=2):
    pts = []
    for j in range(grid.nny - 1):
        for i in range(grid.nnx - 1):
            for a in range(ppc):
                for b in range(ppc):
                    pts.append([
                        grid.x0 + (i + (a + 0.5) / ppc) * grid.hx,
                        grid.y0 + (j + (b + 0.5) / ppc) * grid.hy,
                    ])
    return np.array(pts)


def test_p2g_conserves_mass_and_momentum(rng):
    grid, p = make_cloud(rng)
    grid.reset()
    particles_to_grid(grid, p)

    assert grid.total_mass() == pytest.approx(p.total_mass(), rel=1e-12)
    assert np.allclose(grid.total_momentum(), p.total_momentum(), rtol=1e-12, atol=1e-12)


def test_internal_force_sums_to_zero(rng):
    grid, p = make_cloud(rng)
    p.stress[:] = rng.normal(scale=1e6, size=(len(p), 3))
    grid.reset()
    particles_to_grid(grid, p)
    assert np.allclose(np.sum(grid.force, axis=0), 0.0, atol=1e-6)


def test_external_force_only_when_enabled(rng):
    grid, p = make_cloud(rng)
    g = np.array([0.0, -9.81])

    grid.reset()
    particles_to_grid(grid, p, gravity=g, external_forces=False)
    assert np.allclose(np.sum(grid.force, axis=0), 0.0, atol=1e-9)

    grid.reset()
    particles_to_grid(grid, p, gravity=g, external_forces=True)
    assert np.allclose(np.sum(grid.force, axis=0), p.total_mass() * g)


def test_fixed_axes_are_zeroed(rng):
    grid, p = make_cloud(rng)
    grid.fix_edge("left", axes=(0,))
    grid.fix_edge("bottom", axes=(0, 1))
    p.stress[:] = rng.normal(scale=1e3, size=(len(p), 3))

    grid.reset()
    particles_to_grid(grid, p)
    update_grid_momentum(grid, 1e-3)

    assert np.all(grid.momentum[grid.fixed] == 0.0)
    assert np.all(grid.force[grid.fixed] == 0.0)
    # the free axis of the left edge is untouched
    left = grid.edge_nodes("left")[1:]
    assert not np.all(grid.fixed[left, 1])


def test_stationary_particles_do_not_move():
    grid = Grid(1.0, 1.0, 5, 5)
    x = cell_centres(grid)
    p = ParticleStore.from_positions(x, np.full(x.shape[0], grid.cell_area / 4))
    p.mass[:] = 1.0
    x0 = p.x.copy()

    grid.reset()
    particles_to_grid(grid, p)
    update_grid_momentum(grid, 1e-3)
    grid_to_particles(grid, p, 1e-3)

    assert np.allclose(p.x, x0)
    assert np.allclose(p.velocity, 0.0)
    assert np.allclose(p.F, np.eye(2))
    assert np.allclose(p.strain, 0.0)


def test_uniform_translation_is_exact():
    grid = Grid(1.0, 1.0, 5, 5)
    x = cell_centres(grid)
    n = x.shape[0]
    p = ParticleStore.from_positions(x, np.full(n, grid.cell_area / 4))
    p.mass[:] = 1.0
    v = np.array([0.3, -0.2])
    p.velocity[:] = v
    dt = 1e-3
    x0 = p.x.copy()

    grid.reset()
    particles_to_grid(grid, p)
    update_grid_momentum(grid, dt)
    grid_to_particles(grid, p, dt)

    assert np.allclose(p.x, x0 + v * dt)
    assert np.allclose(p.velocity, v)
    assert np.allclose(p.F, np.eye(2), atol=1e-12)
    assert np.allclose(p.strain, 0.0, atol=1e-12)


def test_uniform_translation_with_particles_on_far_edges():
    grid = Grid(1.0, 1.0, 5, 5)
    edge = np.array([[1.0, 0.4], [0.6, 1.0], [1.0, 1.0]])
    x = np.vstack([cell_centres(grid), edge])
    n = x.shape[0]
    p = ParticleStore.from_positions(x, np.full(n, grid.cell_area / 4))
    p.mass[:] = 1.0
    v = np.array([-0.3, -0.1])
    p.velocity[:] = v
    dt = 1e-3
    x0 = p.x.copy()

    grid.reset()
    particles_to_grid(grid, p)
    update_grid_momentum(grid, dt)
    grid_to_particles(grid, p, dt)

    assert np.allclose(p.x, x0 + v * dt)
    assert np.allclose(p.F, np.eye(2), atol=1e-12)
    assert np.allclose(p.strain, 0.0, atol=1e-12)


def test_stretching_velocity_field_updates_F_and_strain():
    grid = Grid(1.0, 1.0, 5, 5)
    x = cell_centres(grid)
    p = ParticleStore.from_positions(x, np.full(x.shape[0], grid.cell_area / 4))
    p.mass[:] = 1.0
    # v_x = a * x is reproduced exactly by the linear basis
    a = 0.5
    grid.reset()
    grid.mass[:] = 1.0
    grid.momentum[:, 0] = a * grid.nodes[:, 0]
    dt = 1e-2

    grid_to_particles(grid, p, dt)

    assert np.allclose(p.F[:, 0, 0], 1.0 + a * dt)
    assert np.allclose(p.F[:, 1, 1], 1.0)
    assert np.allclose(p.strain[:, 0], a * dt)
    assert np.allclose(p.strain[:, 1:], 0.0)


def test_empty_nodes_are_ignored_in_g2p():
    grid = Grid(1.0, 1.0, 5, 5)
    p = ParticleStore.from_positions([[0.3, 0.3]], [0.01])
    p.mass[:] = 1.0
    grid.reset()
    grid.momentum[:] = 1.0  # momentum without mass must not leak in
    grid_to_particles(grid, p, 1e-3)
    assert np.allclose(p.x, [[0.3, 0.3]])
    assert np.allclose(p.velocity, 0.0)


def test_particle_outside_grid_raises():
    grid = Grid(1.0, 1.0, 5, 5)
    p = ParticleStore.from_positions([[0.5, 1.2]], [0.01])
    p.mass[:] = 1.0
    with pytest.raises(OutOfDomainError):
        particles_to_grid(grid, p)
