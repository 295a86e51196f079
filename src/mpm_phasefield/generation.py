"""Particle generation from simple geometric primitives.

Particles are seeded at the centres of a regular ``ppc[0] x ppc[1]``
subdivision of every background-grid cell; a seed is kept when it lies inside
the shape. Each particle gets the volume of its sub-cell, so a shape that
covers whole cells carries exactly their area.
"""

from __future__ import annotations

from typing import Callable, Sequence, Tuple

import numpy as np

from mpm_phasefield.grid import Grid
from mpm_phasefield.linear_elastic import shear_bulk_moduli
from mpm_phasefield.particles import ParticleStore


def _seed_points(grid: Grid, bbox: np.ndarray, ppc: Sequence[int]) -> Tuple[np.ndarray, float]:
    """Sub-cell centres of all grid cells overlapping ``bbox = [[xmin, ymin], [xmax, ymax]]``."""
    ppx, ppy = int(ppc[0]), int(ppc[1])
    if ppx < 1 or ppy < 1:
        raise ValueError(f"particles per cell must be >= 1 (got {tuple(ppc)})")
    hx, hy = grid.hx, grid.hy

    i0 = max(int(np.floor((bbox[0, 0] - grid.x0) / hx)), 0)
    i1 = min(int(np.ceil((bbox[1, 0] - grid.x0) / hx)), grid.nnx - 1)
    j0 = max(int(np.floor((bbox[0, 1] - grid.y0) / hy)), 0)
    j1 = min(int(np.ceil((bbox[1, 1] - grid.y0) / hy)), grid.nny - 1)

    sx = (np.arange(ppx) + 0.5) * hx / ppx
    sy = (np.arange(ppy) + 0.5) * hy / ppy
    xs = (grid.x0 + np.arange(i0, i1)[:, None] * hx + sx[None, :]).reshape(-1)
    ys = (grid.y0 + np.arange(j0, j1)[:, None] * hy + sy[None, :]).reshape(-1)
    X, Y = np.meshgrid(xs, ys)
    pts = np.column_stack([X.reshape(-1), Y.reshape(-1)])
    return pts, hx * hy / (ppx * ppy)


def _fill(grid: Grid, bbox: np.ndarray, inside: Callable[[np.ndarray], np.ndarray], ppc: Sequence[int]) -> ParticleStore:
    pts, vol = _seed_points(grid, bbox, ppc)
    keep = inside(pts) if pts.shape[0] else np.zeros(0, dtype=bool)
    pts = pts[keep]
    return ParticleStore.from_positions(pts, np.full(pts.shape[0], vol, dtype=float))


def circle(grid: Grid, center: Sequence[float], radius: float, ppc: Sequence[int] = (2, 2)) -> ParticleStore:
    c = np.asarray(center, dtype=float).reshape(2)
    r = float(radius)
    if r <= 0.0:
        raise ValueError(f"circle radius must be positive (got {radius})")
    bbox = np.array([c - r, c + r])
    return _fill(grid, bbox, lambda p: np.sum((p - c) ** 2, axis=1) <= r * r, ppc)


def rectangle(grid: Grid, corners: np.ndarray, ppc: Sequence[int] = (2, 2)) -> ParticleStore:
    """Rectangle given by ``[[xmin, ymin], [xmax, ymax]]``."""
    box = np.asarray(corners, dtype=float).reshape(2, 2)

    def inside(p):
        return (p[:, 0] >= box[0, 0]) & (p[:, 0] <= box[1, 0]) & (p[:, 1] >= box[0, 1]) & (p[:, 1] <= box[1, 1])

    return _fill(grid, box, inside, ppc)


def notched_rectangle(
    grid: Grid,
    corners: np.ndarray,
    notch: np.ndarray,
    ppc: Sequence[int] = (2, 2),
) -> ParticleStore:
    """Rectangle with a rectangular notch (``notch = [[xmin, ymin], [xmax, ymax]]``) removed."""
    box = np.asarray(corners, dtype=float).reshape(2, 2)
    cut = np.asarray(notch, dtype=float).reshape(2, 2)

    def inside(p):
        in_box = (p[:, 0] >= box[0, 0]) & (p[:, 0] <= box[1, 0]) & (p[:, 1] >= box[0, 1]) & (p[:, 1] <= box[1, 1])
        in_cut = (p[:, 0] >= cut[0, 0]) & (p[:, 0] <= cut[1, 0]) & (p[:, 1] >= cut[0, 1]) & (p[:, 1] <= cut[1, 1])
        return in_box & ~in_cut

    return _fill(grid, box, inside, ppc)


def assign_material(
    particles: ParticleStore,
    density: float,
    E: float,
    nu: float,
    velocity: Sequence[float] = (0.0, 0.0),
    color: float = 0.0,
    nsd: int = 2,
) -> ParticleStore:
    """Set mass, elastic constants, initial velocity and display colour in place."""
    shear, bulk = shear_bulk_moduli(E, nu, nsd)
    particles.mass[:] = particles.volume0 * float(density)
    particles.E[:] = float(E)
    particles.nu[:] = float(nu)
    particles.shear[:] = shear
    particles.bulk[:] = bulk
    particles.velocity[:] = np.asarray(velocity, dtype=float).reshape(2)
    particles.color[:] = float(color)
    return particles
