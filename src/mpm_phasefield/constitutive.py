"""Phase-field elastic-damage law with the Amor tension/compression split.

2D plane strain, small strain, Voigt ordering ``[xx, yy, xy]`` with
engineering shear strain. The phase field ``phi`` is 1 for intact material and
0 for fully broken material.

Energy split (Amor et al., 2009)::

    tr      = e_xx + e_yy
    tr+/-   = 0.5 * (tr +/- |tr|)
    psi+    = 0.5 * K * (tr+)^2 + mu * (e_dev : e_dev)     (degradable)
    psi-    = 0.5 * K * (tr-)^2                             (not degraded)

Stress::

    sigma = g(phi) * (K tr+ m + 2 mu e_dev) + K tr- m
    g(phi) = (1 - k) phi^2 + k

with ``m = [1, 1, 0]`` and ``K = lambda + mu`` (2D bulk modulus, see
:func:`mpm_phasefield.linear_elastic.shear_bulk_moduli`). The residual ``k``
keeps a fully broken point from losing all stiffness.

The history variable ``H = max_t psi+`` is the irreversibility condition: it
drives the phase-field equation and never decreases.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from mpm_phasefield.particles import ParticleStore


@njit(cache=True)
def degradation(phi: float, k: float) -> float:
    """Quadratic degradation with residual stiffness ``k``."""
    return (1.0 - k) * phi * phi + k


@njit(cache=True)
def deviatoric_norm2(eps: np.ndarray) -> float:
    """``e_dev : e_dev`` for an engineering-shear Voigt strain."""
    d = eps[0] - eps[1]
    return 0.5 * d * d + 0.5 * eps[2] * eps[2]


@njit(cache=True)
def tensile_energy(bulk: float, shear: float, eps: np.ndarray) -> float:
    """Degradable energy density ``psi+`` (volumetric tension + deviatoric)."""
    tr = eps[0] + eps[1]
    trp = 0.5 * (tr + abs(tr))
    return 0.5 * bulk * trp * trp + shear * deviatoric_norm2(eps)


@njit(cache=True)
def amor_stress(bulk: float, shear: float, phi: float, k: float, eps: np.ndarray) -> np.ndarray:
    """Stress ``[sxx, syy, sxy]`` under the Amor split.

    Parameters
    ----------
    bulk, shear : float
        2D bulk and shear moduli.
    phi : float
        Phase field at the point (1 = intact).
    k : float
        Residual stiffness.
    eps : (3,) ndarray
        Total strain ``[exx, eyy, gxy]``.
    """
    tr = eps[0] + eps[1]
    trp = 0.5 * (tr + abs(tr))
    trm = 0.5 * (tr - abs(tr))
    g = degradation(phi, k)

    sig = np.empty(3, dtype=np.float64)
    sig[0] = g * (bulk * trp + 2.0 * shear * (eps[0] - 0.5 * tr)) + bulk * trm
    sig[1] = g * (bulk * trp + 2.0 * shear * (eps[1] - 0.5 * tr)) + bulk * trm
    sig[2] = g * shear * eps[2]
    return sig


@njit(cache=True)
def amor_update_kernel(
    idx: np.ndarray,
    bulk: np.ndarray,
    shear: np.ndarray,
    phase: np.ndarray,
    k: float,
    strain: np.ndarray,
    stress: np.ndarray,
    history: np.ndarray,
) -> None:
    """Stress and history update for the particles in ``idx`` (in place)."""
    for a in range(idx.shape[0]):
        p = idx[a]
        eps = strain[p]
        sig = amor_stress(bulk[p], shear[p], phase[p], k, eps)
        stress[p, 0] = sig[0]
        stress[p, 1] = sig[1]
        stress[p, 2] = sig[2]
        psi = tensile_energy(bulk[p], shear[p], eps)
        if psi > history[p]:
            history[p] = psi


def update_stress_and_history(particles: ParticleStore, idx: np.ndarray, k: float) -> None:
    """Recompute stress from the accumulated strain and advance the history."""
    idx = np.ascontiguousarray(idx, dtype=np.int64)
    amor_update_kernel(
        idx,
        particles.bulk,
        particles.shear,
        particles.phase,
        float(k),
        particles.strain,
        particles.stress,
        particles.history,
    )


def strain_energy_density(bulk: float, shear: float, phi: float, k: float, eps: np.ndarray) -> float:
    """Degraded stored energy ``g(phi) psi+ + psi-`` at one point."""
    eps = np.asarray(eps, dtype=float).reshape(3)
    tr = float(eps[0] + eps[1])
    trm = 0.5 * (tr - abs(tr))
    psi_m = 0.5 * float(bulk) * trm * trm
    return float(degradation(float(phi), float(k))) * float(tensile_energy(float(bulk), float(shear), eps)) + psi_m
