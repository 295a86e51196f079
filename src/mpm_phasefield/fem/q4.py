"""Q4 shape functions (bilinear quadrilateral)."""

from __future__ import annotations
import numpy as np


def q4_shape_many(xi: np.ndarray, eta: np.ndarray):
    """Bilinear Q4 shape functions at arrays of parent coordinates (counter-clockwise nodes).

    Returns ``N, dN_dxi, dN_deta`` each of shape ``(n, 4)``.
    """
    xi = np.asarray(xi, dtype=float).reshape(-1)
    eta = np.asarray(eta, dtype=float).reshape(-1)
    N = 0.25 * np.column_stack(
        [(1 - xi) * (1 - eta), (1 + xi) * (1 - eta), (1 + xi) * (1 + eta), (1 - xi) * (1 + eta)]
    )
    dN_dxi = 0.25 * np.column_stack([-(1 - eta), (1 - eta), (1 + eta), -(1 + eta)])
    dN_deta = 0.25 * np.column_stack([-(1 - xi), -(1 + xi), (1 + xi), (1 - xi)])
    return N, dN_dxi, dN_deta


def q4_global_gradients(dN_dxi: np.ndarray, dN_deta: np.ndarray, dx: float, dy: float):
    """Physical gradients for an axis-aligned ``dx x dy`` element (constant Jacobian)."""
    return dN_dxi * (2.0 / float(dx)), dN_deta * (2.0 / float(dy))
