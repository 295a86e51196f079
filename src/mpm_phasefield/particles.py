"""Structure-of-arrays particle store.

All material points of a run (deformable and rigid) live in one
:class:`ParticleStore`. Rigid bodies refer to their particles by index and
the ``role`` array tags each row as deformable or rigid, so no two groups hold
aliased references to the same state.

The store is sized once during setup (``append`` is meant for scenario
construction) and then only mutated in place by the solver.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable, List, Optional

import numpy as np

from mpm_phasefield.material_point import DEFORMABLE, RIGID, MaterialPoint


@dataclass
class ParticleStore:
    x: np.ndarray
    volume0: np.ndarray
    volume: np.ndarray
    mass: np.ndarray
    velocity: np.ndarray
    F: np.ndarray
    strain: np.ndarray
    stress: np.ndarray
    external_force: np.ndarray
    E: np.ndarray
    nu: np.ndarray
    shear: np.ndarray
    bulk: np.ndarray
    phase: np.ndarray
    history: np.ndarray
    color: np.ndarray
    role: np.ndarray

    @classmethod
    def empty(cls, n: int) -> "ParticleStore":
        """Zero-initialised store for ``n`` particles (F = identity, phase = 1)."""
        n = int(n)
        F = np.zeros((n, 2, 2), dtype=float)
        F[:, 0, 0] = 1.0
        F[:, 1, 1] = 1.0
        return cls(
            x=np.zeros((n, 2), dtype=float),
            volume0=np.zeros(n, dtype=float),
            volume=np.zeros(n, dtype=float),
            mass=np.zeros(n, dtype=float),
            velocity=np.zeros((n, 2), dtype=float),
            F=F,
            strain=np.zeros((n, 3), dtype=float),
            stress=np.zeros((n, 3), dtype=float),
            external_force=np.zeros((n, 2), dtype=float),
            E=np.zeros(n, dtype=float),
            nu=np.zeros(n, dtype=float),
            shear=np.zeros(n, dtype=float),
            bulk=np.zeros(n, dtype=float),
            phase=np.ones(n, dtype=float),
            history=np.zeros(n, dtype=float),
            color=np.zeros(n, dtype=float),
            role=np.full(n, DEFORMABLE, dtype=np.int8),
        )

    @classmethod
    def from_positions(cls, x: np.ndarray, volume: np.ndarray) -> "ParticleStore":
        x = np.asarray(x, dtype=float).reshape(-1, 2)
        store = cls.empty(x.shape[0])
        store.x[:] = x
        store.volume0[:] = np.asarray(volume, dtype=float)
        store.volume[:] = store.volume0
        return store

    @classmethod
    def from_points(cls, points: Iterable[MaterialPoint]) -> "ParticleStore":
        points = list(points)
        store = cls.empty(len(points))
        for i, mp in enumerate(points):
            store.set_mp(i, mp)
        return store

    def __len__(self) -> int:
        return int(self.x.shape[0])

    @property
    def n(self) -> int:
        return len(self)

    @property
    def momentum(self) -> np.ndarray:
        """Particle momenta, derived from velocity (never integrated separately)."""
        return self.mass[:, None] * self.velocity

    @property
    def deformable(self) -> np.ndarray:
        return np.flatnonzero(self.role == DEFORMABLE)

    @property
    def rigid(self) -> np.ndarray:
        return np.flatnonzero(self.role == RIGID)

    def get_mp(self, i: int) -> MaterialPoint:
        """Copy of particle ``i`` as a :class:`MaterialPoint` record."""
        i = int(i)
        return MaterialPoint(
            x=self.x[i].copy(),
            volume0=float(self.volume0[i]),
            volume=float(self.volume[i]),
            mass=float(self.mass[i]),
            velocity=self.velocity[i].copy(),
            F=self.F[i].copy(),
            strain=self.strain[i].copy(),
            stress=self.stress[i].copy(),
            external_force=self.external_force[i].copy(),
            E=float(self.E[i]),
            nu=float(self.nu[i]),
            shear=float(self.shear[i]),
            bulk=float(self.bulk[i]),
            phase=float(self.phase[i]),
            history=float(self.history[i]),
            color=float(self.color[i]),
            role=int(self.role[i]),
        )

    def set_mp(self, i: int, mp: MaterialPoint) -> None:
        i = int(i)
        for f in fields(self):
            getattr(self, f.name)[i] = getattr(mp, f.name)

    def append(self, other: "ParticleStore") -> np.ndarray:
        """Append ``other`` in place and return the indices of the new rows."""
        start = len(self)
        for f in fields(self):
            merged = np.concatenate([getattr(self, f.name), getattr(other, f.name)], axis=0)
            setattr(self, f.name, merged)
        return np.arange(start, len(self), dtype=int)

    def copy(self) -> "ParticleStore":
        return ParticleStore(**{f.name: np.array(getattr(self, f.name), copy=True) for f in fields(self)})

    def total_mass(self, idx: Optional[np.ndarray] = None) -> float:
        m = self.mass if idx is None else self.mass[idx]
        return float(np.sum(m))

    def total_momentum(self, idx: Optional[np.ndarray] = None) -> np.ndarray:
        p = self.momentum if idx is None else self.momentum[idx]
        return np.sum(p, axis=0)


def concatenate(stores: List[ParticleStore]) -> ParticleStore:
    """Concatenate several stores into a new one (order preserved)."""
    if not stores:
        return ParticleStore.empty(0)
    out = stores[0].copy()
    for s in stores[1:]:
        out.append(s)
    return out
