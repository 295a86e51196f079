"""Material-point state record.

:class:`MaterialPoint` is a per-particle *view* of one row of
:class:`~mpm_phasefield.particles.ParticleStore`. The solver itself never works
on these objects (it works on the arrays); they exist for inspection, tests
and small hand-built setups.

Voigt ordering is ``[xx, yy, xy]`` with engineering shear strain
(``e_xy = du/dy + dv/dx``) and tensor shear stress.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


DEFORMABLE = 0
RIGID = 1


@dataclass
class MaterialPoint:
    """State of one material point.

    Momentum is not stored: it is ``mass * velocity`` (see :attr:`momentum`).
    """

    x: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=float))
    volume0: float = 0.0
    volume: float = 0.0
    mass: float = 0.0
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=float))
    F: np.ndarray = field(default_factory=lambda: np.eye(2, dtype=float))
    strain: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    stress: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))
    external_force: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=float))

    E: float = 0.0
    nu: float = 0.0
    shear: float = 0.0
    bulk: float = 0.0

    phase: float = 1.0
    history: float = 0.0

    color: float = 0.0
    role: int = DEFORMABLE

    @property
    def momentum(self) -> np.ndarray:
        return self.mass * np.asarray(self.velocity, dtype=float)

    @property
    def is_rigid(self) -> bool:
        return int(self.role) == RIGID

