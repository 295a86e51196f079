"""AT2 phase-field solve on the auxiliary Q4 mesh.

With ``phi = 1`` for intact and ``phi = 0`` for broken material the strong
form reads::

    (Gc / l0 + 2 H) phi - Gc l0 lap(phi) = Gc / l0

where ``H`` is the particle history field (max tensile energy density). The
weak form is integrated with the binned deformable particles as quadrature
points (weight = current particle volume)::

    K_IJ = sum_p V_p [ (Gc/l0 + 2 H_p) N_I N_J + Gc l0 grad N_I . grad N_J ]
    f_I  = sum_p V_p (Gc / l0) N_I

Nodes without supporting particles are pinned to 1.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from mpm_phasefield.fem.bcs import apply_dirichlet, diagonal_shift, pin_unsupported_nodes
from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.particles import ParticleStore


DEFAULT_DIAGONAL_SHIFT = 1.0e-10


def assemble_phase_field_system(
    mesh: PhaseFieldMesh,
    particles: ParticleStore,
    l0: float,
    Gc: float,
    idx: Optional[np.ndarray] = None,
):
    """Assemble ``K`` (csr) and ``f`` for the particles ``idx``.

    ``idx`` defaults to the particles binned by the last
    :meth:`PhaseFieldMesh.update`.
    """
    if idx is None:
        if mesh.particle_elem.shape[0] != len(particles):
            mesh.update(particles)
        idx = mesh.elem_particles
        elem_ids = mesh.particle_elem[idx]
    else:
        idx = np.asarray(idx, dtype=int)
        elem_ids = None

    n_nodes = mesh.n_nodes
    if idx.size == 0:
        return sp.csr_matrix((n_nodes, n_nodes), dtype=float), np.zeros(n_nodes, dtype=float)

    elem_ids, N, dN_dx, dN_dy = mesh.shape_functions(particles.x[idx], elem_ids)
    V = particles.volume[idx]
    H = particles.history[idx]

    a = float(Gc) / float(l0)
    b = float(Gc) * float(l0)
    reaction = V * (a + 2.0 * H)
    Ke = (
        reaction[:, None, None] * N[:, :, None] * N[:, None, :]
        + (b * V)[:, None, None] * (dN_dx[:, :, None] * dN_dx[:, None, :] + dN_dy[:, :, None] * dN_dy[:, None, :])
    )
    conn = mesh.elems[elem_ids]
    rows = np.broadcast_to(conn[:, :, None], Ke.shape).reshape(-1)
    cols = np.broadcast_to(conn[:, None, :], Ke.shape).reshape(-1)
    K = sp.coo_matrix((Ke.reshape(-1), (rows, cols)), shape=(n_nodes, n_nodes)).tocsr()

    fe = (a * V)[:, None] * N
    f = np.bincount(conn.reshape(-1), weights=fe.reshape(-1), minlength=n_nodes).astype(float)
    return K, f


def solve_phase_field(
    field: np.ndarray,
    mesh: PhaseFieldMesh,
    particles: ParticleStore,
    l0: float,
    Gc: float,
    diagonal_eps: float = DEFAULT_DIAGONAL_SHIFT,
) -> np.ndarray:
    """Solve for the nodal phase field and write it into ``field`` in place.

    Returns ``field`` for convenience.
    """
    if field.shape[0] != mesh.n_nodes:
        raise ValueError(f"phase field has {field.shape[0]} entries, mesh has {mesh.n_nodes} nodes")

    K, f = assemble_phase_field_system(mesh, particles, l0, Gc)
    fixed = pin_unsupported_nodes(K, value=1.0)
    K, f = diagonal_shift(K, f, diagonal_eps, target=1.0)

    u = np.ones(mesh.n_nodes, dtype=float)
    free, K_ff, f_f, _ = apply_dirichlet(K, f, fixed, u)
    if free.size:
        u[free] = spla.spsolve(K_ff.tocsc(), f_f)
    if not np.all(np.isfinite(u)):
        raise RuntimeError("phase-field solve produced non-finite values")

    field[:] = np.clip(u, 0.0, 1.0)
    return field
