"""Particle <-> grid transfer operators (P2G / G2P) and nodal update.

One explicit step of the mechanical solve is::

    grid.reset()
    particles_to_grid(...)          # mass, momentum, internal (+ external) force
    update_grid_momentum(...)       # p += f dt, fixed-DOF pass
    enforce_rigid_bodies(...)       # see mpm_phasefield.rigid
    grid_to_particles(...)          # v, x, F, strain (kinematics only)

The particle loops are compiled with Numba. P2G is a scatter onto shared
nodes and is kept serial; G2P writes only particle-owned rows.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numba import njit

from mpm_phasefield.basis import cell_shape_and_gradient_xy
from mpm_phasefield.grid import DEFAULT_SMALL_MASS, Grid
from mpm_phasefield.particles import ParticleStore


# -----------------------------------------------------------------------------
# Compiled kernels
# -----------------------------------------------------------------------------


@njit(cache=True)
def _cell_nodes(px: float, py: float, x0: float, y0: float, hx: float, hy: float, nnx: int, nny: int):
    i = int(np.floor((px - x0) / hx))
    j = int(np.floor((py - y0) / hy))
    if i < 0:
        i = 0
    if i > nnx - 2:
        i = nnx - 2
    if j < 0:
        j = 0
    if j > nny - 2:
        j = nny - 2
    n1 = j * nnx + i
    # lower-left, lower-right, upper-right, upper-left
    return n1, n1 + 1, n1 + nnx + 1, n1 + nnx


@njit(cache=True)
def p2g_kernel(
    idx: np.ndarray,
    x: np.ndarray,
    mass: np.ndarray,
    velocity: np.ndarray,
    volume: np.ndarray,
    stress: np.ndarray,
    ext_force: np.ndarray,
    gravity: np.ndarray,
    use_external: bool,
    nodes: np.ndarray,
    x0: float,
    y0: float,
    hx: float,
    hy: float,
    nnx: int,
    nny: int,
    g_mass: np.ndarray,
    g_momentum: np.ndarray,
    g_force: np.ndarray,
) -> None:
    for a in range(idx.shape[0]):
        p = idx[a]
        px = x[p, 0]
        py = x[p, 1]
        mp = mass[p]
        vp = volume[p]
        sxx = stress[p, 0]
        syy = stress[p, 1]
        sxy = stress[p, 2]
        cell = _cell_nodes(px, py, x0, y0, hx, hy, nnx, nny)
        for c in range(4):
            n = cell[c]
            w, dwx, dwy = cell_shape_and_gradient_xy(
                px, py, nodes[n, 0], nodes[n, 1], hx, hy, c == 1 or c == 2, c >= 2
            )
            g_mass[n] += w * mp
            g_momentum[n, 0] += w * mp * velocity[p, 0]
            g_momentum[n, 1] += w * mp * velocity[p, 1]
            g_force[n, 0] -= vp * (dwx * sxx + dwy * sxy)
            g_force[n, 1] -= vp * (dwy * syy + dwx * sxy)
            if use_external:
                g_force[n, 0] += w * (mp * gravity[0] + ext_force[p, 0])
                g_force[n, 1] += w * (mp * gravity[1] + ext_force[p, 1])


@njit(cache=True)
def g2p_kernel(
    idx: np.ndarray,
    x: np.ndarray,
    velocity: np.ndarray,
    F: np.ndarray,
    strain: np.ndarray,
    nodes: np.ndarray,
    x0: float,
    y0: float,
    hx: float,
    hy: float,
    nnx: int,
    nny: int,
    g_mass: np.ndarray,
    g_momentum: np.ndarray,
    g_force: np.ndarray,
    dt: float,
    small_mass: float,
) -> None:
    for a in range(idx.shape[0]):
        p = idx[a]
        px = x[p, 0]
        py = x[p, 1]
        dx0 = 0.0
        dx1 = 0.0
        dv0 = 0.0
        dv1 = 0.0
        # deformation-gradient increment, starts at identity
        f00 = 1.0
        f01 = 0.0
        f10 = 0.0
        f11 = 1.0
        cell = _cell_nodes(px, py, x0, y0, hx, hy, nnx, nny)
        for c in range(4):
            n = cell[c]
            m = g_mass[n]
            if m <= small_mass:
                continue
            w, dwx, dwy = cell_shape_and_gradient_xy(
                px, py, nodes[n, 0], nodes[n, 1], hx, hy, c == 1 or c == 2, c >= 2
            )
            vn0 = g_momentum[n, 0] / m
            vn1 = g_momentum[n, 1] / m
            dv0 += w * g_force[n, 0] / m * dt
            dv1 += w * g_force[n, 1] / m * dt
            dx0 += w * vn0 * dt
            dx1 += w * vn1 * dt
            f00 += vn0 * dwx * dt
            f01 += vn0 * dwy * dt
            f10 += vn1 * dwx * dt
            f11 += vn1 * dwy * dt

        x[p, 0] = px + dx0
        x[p, 1] = py + dx1
        velocity[p, 0] += dv0
        velocity[p, 1] += dv1

        a00 = F[p, 0, 0]
        a01 = F[p, 0, 1]
        a10 = F[p, 1, 0]
        a11 = F[p, 1, 1]
        F[p, 0, 0] = f00 * a00 + f01 * a10
        F[p, 0, 1] = f00 * a01 + f01 * a11
        F[p, 1, 0] = f10 * a00 + f11 * a10
        F[p, 1, 1] = f10 * a01 + f11 * a11

        strain[p, 0] += f00 - 1.0
        strain[p, 1] += f11 - 1.0
        strain[p, 2] += f01 + f10


# -----------------------------------------------------------------------------
# Python entry points
# -----------------------------------------------------------------------------


def particles_to_grid(
    grid: Grid,
    particles: ParticleStore,
    idx: Optional[np.ndarray] = None,
    gravity: Optional[np.ndarray] = None,
    external_forces: bool = False,
) -> None:
    """Scatter mass, momentum and force of the particles ``idx`` onto ``grid``.

    ``idx`` defaults to every deformable particle. Contributions are added to
    the current nodal values; call :meth:`Grid.reset` first.
    """
    if idx is None:
        idx = particles.deformable
    idx = np.ascontiguousarray(idx, dtype=np.int64)
    grid.check_inside(particles.x[idx])
    g = np.zeros(2, dtype=float) if gravity is None else np.asarray(gravity, dtype=float).reshape(2)
    p2g_kernel(
        idx,
        particles.x,
        particles.mass,
        particles.velocity,
        particles.volume,
        particles.stress,
        particles.external_force,
        g,
        bool(external_forces),
        grid.nodes,
        float(grid.x0),
        float(grid.y0),
        grid.hx,
        grid.hy,
        grid.nnx,
        grid.nny,
        grid.mass,
        grid.momentum,
        grid.force,
    )


def update_grid_momentum(grid: Grid, dt: float) -> None:
    """Integrate nodal momentum and zero momentum/force on fixed axes."""
    grid.momentum += grid.force * float(dt)
    grid.momentum[grid.fixed] = 0.0
    grid.force[grid.fixed] = 0.0


def grid_to_particles(
    grid: Grid,
    particles: ParticleStore,
    dt: float,
    idx: Optional[np.ndarray] = None,
    small_mass: float = DEFAULT_SMALL_MASS,
) -> None:
    """Gather the nodal solution back onto the particles ``idx``.

    Updates velocity, centroid, deformation gradient and accumulated strain
    in place. Stress, phase field, history and volume are updated afterwards
    by the caller (they need the phase-field mesh).
    """
    if idx is None:
        idx = particles.deformable
    idx = np.ascontiguousarray(idx, dtype=np.int64)
    grid.check_inside(particles.x[idx])
    g2p_kernel(
        idx,
        particles.x,
        particles.velocity,
        particles.F,
        particles.strain,
        grid.nodes,
        float(grid.x0),
        float(grid.y0),
        grid.hx,
        grid.hy,
        grid.nnx,
        grid.nny,
        grid.mass,
        grid.momentum,
        grid.force,
        float(dt),
        float(small_mass),
    )
