"""Linear-elastic helpers shared across the package.

Placed at top-level so that `mpm_phasefield.constitutive`,
`mpm_phasefield.generation` and `mpm_phasefield.config` can use them without
importing each other.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np


def shear_bulk_moduli(E: float, nu: float, nsd: int = 2) -> Tuple[float, float]:
    """Shear modulus and ``nsd``-dimensional bulk modulus.

    Parameters
    ----------
    E:
        Young's modulus.
    nu:
        Poisson's ratio.
    nsd:
        Number of spatial dimensions. For ``nsd = 2`` (plane strain) the bulk
        modulus is ``lambda + mu``, so that ``bulk * tr(eps)`` is the in-plane
        mean stress.

    Returns
    -------
    shear, bulk : float
    """
    E = float(E)
    nu = float(nu)
    shear = E / 2.0 / (1.0 + nu)
    lam = E * nu / (1.0 + nu) / (1.0 - 2.0 * nu)
    bulk = lam + 2.0 * shear / float(nsd)
    return shear, bulk


def plane_strain_C(E: float, nu: float) -> np.ndarray:
    """Plane-strain constitutive matrix in Voigt ordering [xx, yy, xy].

    Engineering shear strain, so ``C[2, 2] = mu``.
    """
    E = float(E)
    nu = float(nu)
    mu = E / (2.0 * (1.0 + nu))
    lam = E * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
    return np.array(
        [[lam + 2.0 * mu, lam, 0.0], [lam, lam + 2.0 * mu, 0.0], [0.0, 0.0, mu]],
        dtype=float,
    )


def wave_speed(E: float, density: float) -> float:
    """Bar wave speed ``sqrt(E / rho)`` used for the explicit step estimate."""
    return math.sqrt(float(E) / float(density))
