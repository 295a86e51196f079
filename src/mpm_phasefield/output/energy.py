"""Global energy and momentum diagnostics.

Quantities tracked per step:
  - kinetic energy of the deformable particles
  - stored (degraded) elastic energy, ``g(phi) psi+ + psi-``
  - crack surface energy of the AT2 functional,
    ``Gc * int[ (1 - phi)^2 / (2 l0) + l0 / 2 |grad phi|^2 ]``
  - total linear momentum and mass

Integrals use the deformable particles as quadrature points, the same rule as
the phase-field solve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import pandas as pd

from mpm_phasefield.constitutive import strain_energy_density
from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.particles import ParticleStore


@dataclass
class EnergyBalance:
    """Energy balance for a single step.

    All energies in Joules per unit thickness [J/m].
    """

    step: int = 0
    time: float = 0.0
    W_kinetic: float = 0.0
    W_elastic: float = 0.0
    W_fracture: float = 0.0
    W_total: float = 0.0
    momentum_x: float = 0.0
    momentum_y: float = 0.0
    mass: float = 0.0

    def compute_total(self) -> float:
        self.W_total = self.W_kinetic + self.W_elastic + self.W_fracture
        return self.W_total

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for export."""
        return {
            "step": self.step,
            "time": self.time,
            "W_kinetic": self.W_kinetic,
            "W_elastic": self.W_elastic,
            "W_fracture": self.W_fracture,
            "W_total": self.W_total,
            "momentum_x": self.momentum_x,
            "momentum_y": self.momentum_y,
            "mass": self.mass,
        }

    def __repr__(self) -> str:
        lines = [
            f"Energy Balance [J/m] (step {self.step}, t={self.time:.6e}):",
            f"  Kinetic:               {self.W_kinetic:12.6e}",
            f"  Elastic stored:        {self.W_elastic:12.6e}",
            f"  Crack surface:         {self.W_fracture:12.6e}",
            f"  Total:                 {self.W_total:12.6e}",
            f"  Momentum (x, y):       {self.momentum_x:12.6e} {self.momentum_y:12.6e}",
        ]
        return "\n".join(lines)


def compute_global_energies(
    particles: ParticleStore,
    mesh: PhaseFieldMesh,
    phase_field: np.ndarray,
    k: float,
    l0: float,
    Gc: float,
    step: int = 0,
    time: float = 0.0,
) -> EnergyBalance:
    idx = particles.deformable
    eb = EnergyBalance(step=int(step), time=float(time))
    if idx.size == 0:
        return eb

    m = particles.mass[idx]
    v = particles.velocity[idx]
    V = particles.volume[idx]
    eb.W_kinetic = float(0.5 * np.sum(m * np.sum(v * v, axis=1)))

    w_el = 0.0
    for a, p in enumerate(idx):
        w_el += V[a] * strain_energy_density(
            particles.bulk[p], particles.shear[p], particles.phase[p], k, particles.strain[p]
        )
    eb.W_elastic = float(w_el)

    elem_ids, N, dN_dx, dN_dy = mesh.shape_functions(particles.x[idx])
    phi_e = np.asarray(phase_field, dtype=float)[mesh.elems[elem_ids]]
    phi = np.sum(N * phi_e, axis=1)
    gx = np.sum(dN_dx * phi_e, axis=1)
    gy = np.sum(dN_dy * phi_e, axis=1)
    dens = (1.0 - phi) ** 2 / (2.0 * l0) + 0.5 * l0 * (gx * gx + gy * gy)
    eb.W_fracture = float(Gc * np.sum(V * dens))

    p_tot = particles.total_momentum(idx)
    eb.momentum_x = float(p_tot[0])
    eb.momentum_y = float(p_tot[1])
    eb.mass = particles.total_mass(idx)
    eb.compute_total()
    return eb


@dataclass
class EnergyHistory:
    """Per-step record of :class:`EnergyBalance` entries."""

    records: List[EnergyBalance] = field(default_factory=list)

    def append(self, eb: EnergyBalance) -> None:
        self.records.append(eb)

    def __len__(self) -> int:
        return len(self.records)

    def to_dataframe(self) -> pd.DataFrame:
        columns = list(EnergyBalance().to_dict().keys())
        return pd.DataFrame([r.to_dict() for r in self.records], columns=columns)

    def to_csv(self, filepath: str) -> None:
        self.to_dataframe().to_csv(filepath, index=False)
