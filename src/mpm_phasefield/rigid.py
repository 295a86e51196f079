"""Rigid-body groups with prescribed velocity.

A rigid body is a set of particle indices in the shared
:class:`~mpm_phasefield.particles.ParticleStore` moving with one imposed
velocity. Rigid particles do not scatter to the grid and are not updated by
the constitutive law. Instead, every grid node supporting a rigid particle has
its momentum overwritten with ``mass * v_rigid`` (and its vertical force
cleared), which drives the deformable particles sharing those nodes. This
approximates a moving indenter or a roller support without a contact
algorithm.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from mpm_phasefield.grid import Grid
from mpm_phasefield.material_point import RIGID
from mpm_phasefield.particles import ParticleStore


@dataclass
class RigidBody:
    """Named group of rigid particles.

    Attributes
    ----------
    name : str
    indices : np.ndarray
        Particle indices into the shared store.
    velocity : np.ndarray
        Imposed velocity (2,). Replaced by ``velocity_fn(t)`` when given.
    velocity_fn : callable, optional
        ``velocity_fn(t) -> (2,)`` for externally driven bodies.
    """

    name: str
    indices: np.ndarray
    velocity: np.ndarray
    velocity_fn: Optional[Callable[[float], Sequence[float]]] = None

    def __post_init__(self):
        self.indices = np.asarray(self.indices, dtype=int).reshape(-1)
        self.velocity = np.asarray(self.velocity, dtype=float).reshape(2).copy()

    def current_velocity(self, t: float) -> np.ndarray:
        if self.velocity_fn is not None:
            self.velocity = np.asarray(self.velocity_fn(float(t)), dtype=float).reshape(2).copy()
        return self.velocity

    def sync_particles(self, particles: ParticleStore, t: float) -> None:
        """Write the body's current velocity onto its particles."""
        particles.velocity[self.indices] = self.current_velocity(t)

    def support_nodes(self, grid: Grid, particles: ParticleStore) -> np.ndarray:
        return grid.nodes_for_particles(particles.x[self.indices])

    def centroid(self, particles: ParticleStore) -> np.ndarray:
        m = particles.mass[self.indices]
        x = particles.x[self.indices]
        if float(np.sum(m)) > 0.0:
            return np.sum(m[:, None] * x, axis=0) / float(np.sum(m))
        return np.mean(x, axis=0)


def make_rigid_body(
    name: str,
    particles: ParticleStore,
    indices: np.ndarray,
    velocity: Sequence[float] = (0.0, 0.0),
    velocity_fn: Optional[Callable[[float], Sequence[float]]] = None,
) -> RigidBody:
    """Tag ``indices`` as rigid and return the corresponding body."""
    body = RigidBody(name=name, indices=indices, velocity=np.asarray(velocity, dtype=float), velocity_fn=velocity_fn)
    particles.role[body.indices] = RIGID
    particles.velocity[body.indices] = body.velocity
    return body


def enforce_rigid_bodies(grid: Grid, particles: ParticleStore, bodies: List[RigidBody]) -> None:
    """Impose each body's velocity on the grid nodes under its particles.

    Must run after the fixed-DOF pass of
    :func:`~mpm_phasefield.transfer.update_grid_momentum`: at shared nodes the
    rigid constraint wins over both the stress response and the fixed flags.
    """
    for body in bodies:
        ids = body.support_nodes(grid, particles)
        if ids.size == 0:
            continue
        grid.momentum[ids] = grid.mass[ids, None] * body.velocity[None, :]
        grid.force[ids, 1] = 0.0


def advance_rigid_bodies(particles: ParticleStore, bodies: List[RigidBody], dt: float) -> None:
    """Transport rigid particles kinematically: ``x += v dt``."""
    for body in bodies:
        particles.x[body.indices] += float(dt) * particles.velocity[body.indices]
