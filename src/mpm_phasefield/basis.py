"""Classic linear MPM basis (tent functions on a structured grid).

For a particle at ``xp`` and a grid node at ``xn`` with cell size ``h``::

    N(d) = 1 - |d| / h      for |d| <= h,  d = xp - xn
    N(d) = 0                otherwise

and the 2D weight is the tensor product ``w = Nx * Ny``.

Inside a cell the slope is ``-1/h`` for the node on the lower/left side and
``+1/h`` for the node on the upper/right side. The side is taken from the
cell the grid assigns to the particle, so a particle lying on a node (or on
the far edge of the grid) still gets gradients that sum to zero over its four
nodes.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit


@njit(cache=True)
def tent_1d(d: float, h: float) -> Tuple[float, float]:
    """1D tent value and derivative for the offset ``d = xp - xn``.

    At ``d = 0`` the node is taken as the lower/left node of the cell.
    """
    a = abs(d)
    if a > h:
        return 0.0, 0.0
    N = 1.0 - a / h
    if d >= 0.0:
        return N, -1.0 / h
    return N, 1.0 / h


@njit(cache=True)
def tent_1d_in_cell(d: float, h: float, upper: bool) -> Tuple[float, float]:
    """1D tent for a node of the particle's cell; ``upper`` marks the right/top node."""
    N = 1.0 - abs(d) / h
    if N < 0.0:
        N = 0.0
    if upper:
        return N, 1.0 / h
    return N, -1.0 / h


@njit(cache=True)
def shape_and_gradient_xy(px: float, py: float, nx: float, ny: float, hx: float, hy: float):
    """Scalar form of :func:`shape_and_gradient` without cell context."""
    Nx, dNx = tent_1d(px - nx, hx)
    Ny, dNy = tent_1d(py - ny, hy)
    return Nx * Ny, dNx * Ny, Nx * dNy


@njit(cache=True)
def cell_shape_and_gradient_xy(
    px: float, py: float, nx: float, ny: float, hx: float, hy: float, upper_x: bool, upper_y: bool
):
    """Weight and gradient of one node of the particle's cell (compiled loops)."""
    Nx, dNx = tent_1d_in_cell(px - nx, hx, upper_x)
    Ny, dNy = tent_1d_in_cell(py - ny, hy, upper_y)
    return Nx * Ny, dNx * Ny, Nx * dNy


def shape_and_gradient(
    xp: np.ndarray,
    xn: np.ndarray,
    h: np.ndarray,
    upper: Optional[Sequence[bool]] = None,
) -> Tuple[float, np.ndarray]:
    """Weight and gradient of node ``xn`` evaluated at particle ``xp``.

    Parameters
    ----------
    xp, xn : (2,) array_like
        Particle centroid and node coordinates.
    h : (2,) array_like
        Grid cell size ``(hx, hy)``.
    upper : (2,) bools, optional
        Whether ``xn`` is the right (x) / top (y) node of the cell holding
        ``xp``. Without it the side is inferred from the sign of ``xp - xn``,
        which is ambiguous only when the particle lies on the node.

    Returns
    -------
    w : float
    dw : (2,) ndarray
    """
    xp = np.asarray(xp, dtype=float).reshape(2)
    xn = np.asarray(xn, dtype=float).reshape(2)
    h = np.asarray(h, dtype=float).reshape(2)
    if upper is None:
        w, dwx, dwy = shape_and_gradient_xy(xp[0], xp[1], xn[0], xn[1], h[0], h[1])
    else:
        w, dwx, dwy = cell_shape_and_gradient_xy(
            xp[0], xp[1], xn[0], xn[1], h[0], h[1], bool(upper[0]), bool(upper[1])
        )
    return float(w), np.array([dwx, dwy], dtype=float)
