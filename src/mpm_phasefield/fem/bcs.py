"""Boundary condition helpers."""

from __future__ import annotations
from typing import Dict, Tuple
import numpy as np
import scipy.sparse as sp

def apply_dirichlet(K: sp.csr_matrix, f: np.ndarray, fixed: Dict[int, float], u: np.ndarray):
    """
    Linear Dirichlet handling by static condensation:
    - Enforce u[dof] = value directly on the solution vector
    - Return the reduced system on free dofs: K_ff * u_f = f_f - K_fc * u_c
    """
    ndof = K.shape[0]
    all_ids = np.arange(ndof, dtype=int)
    fixed_ids = np.array(sorted(fixed.keys()), dtype=int)
    free = np.setdiff1d(all_ids, fixed_ids)

    for dof in fixed_ids:
        u[dof] = fixed[dof]

    K_ff = K[free, :][:, free]
    f_f = f[free]
    if fixed_ids.size:
        f_f = f_f - K[free, :][:, fixed_ids] @ u[fixed_ids]
    return free, K_ff, f_f, fixed_ids


def pin_unsupported_nodes(K: sp.csr_matrix, value: float = 1.0) -> Dict[int, float]:
    """Dirichlet map for nodes whose row of ``K`` is empty.

    Phase-field nodes that no particle supports carry no equation; they are
    pinned to ``value`` (intact material).
    """
    diag = np.asarray(K.diagonal()).reshape(-1)
    row_nnz = np.diff(K.tocsr().indptr)
    empty = np.flatnonzero((row_nnz == 0) | (diag == 0.0))
    return {int(i): float(value) for i in empty}


def diagonal_shift(K: sp.csr_matrix, f: np.ndarray, eps: float, target: float = 1.0) -> Tuple[sp.csr_matrix, np.ndarray]:
    """Add ``eps * diag(K)`` to both sides so ``target`` stays a solution.

    Keeps particle-quadrature systems (one point per element is common)
    non-singular: ``(K + eps D) u = f + eps D * target``.
    """
    if eps <= 0.0:
        return K, f
    d = np.asarray(K.diagonal()).reshape(-1) * float(eps)
    return (K + sp.diags(d)).tocsr(), f + d * float(target)
