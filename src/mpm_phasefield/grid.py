"""Structured background grid for the mechanical (momentum) solve.

The grid is an arena of flat node arrays indexed by ``j * nnx + i``
(``i`` along x, ``j`` along y), the same numbering as
:func:`mpm_phasefield.fem.mesh.structured_quad_mesh`. Per-step accumulators
(mass, momentum, force) are zeroed in place by :meth:`Grid.reset`; the
fixed-DOF flags are set once at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from mpm_phasefield.basis import shape_and_gradient


DEFAULT_SMALL_MASS = 1.0e-8
"""Nodes with mass at or below this value are treated as empty.

Dividing nodal momentum/force by a vanishing mass would blow up the particle
update, so such nodes contribute nothing to G2P. The default matches SI units
with particle masses of order 1e-6 kg and above; scale it with the problem.
"""


class OutOfDomainError(RuntimeError):
    """A particle left the region covered by the grid or the phase-field mesh."""


@dataclass
class Grid:
    lx: float
    ly: float
    nnx: int
    nny: int
    x0: float = 0.0
    y0: float = 0.0

    nodes: np.ndarray = field(init=False, repr=False)
    mass: np.ndarray = field(init=False, repr=False)
    momentum: np.ndarray = field(init=False, repr=False)
    force: np.ndarray = field(init=False, repr=False)
    fixed: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.nnx = int(self.nnx)
        self.nny = int(self.nny)
        if self.nnx < 2 or self.nny < 2:
            raise ValueError(f"Grid needs at least 2 nodes per direction (got {self.nnx} x {self.nny})")
        if self.lx <= 0.0 or self.ly <= 0.0:
            raise ValueError(f"Grid lengths must be positive (got lx={self.lx}, ly={self.ly})")

        xs = self.x0 + np.linspace(0.0, self.lx, self.nnx)
        ys = self.y0 + np.linspace(0.0, self.ly, self.nny)
        self.nodes = np.array([[x, y] for y in ys for x in xs], dtype=float)

        nn = self.n_nodes
        self.mass = np.zeros(nn, dtype=float)
        self.momentum = np.zeros((nn, 2), dtype=float)
        self.force = np.zeros((nn, 2), dtype=float)
        self.fixed = np.zeros((nn, 2), dtype=bool)

    # ------------------------------------------------------------------
    # geometry
    # ------------------------------------------------------------------

    @property
    def n_nodes(self) -> int:
        return self.nnx * self.nny

    @property
    def hx(self) -> float:
        return float(self.lx) / (self.nnx - 1)

    @property
    def hy(self) -> float:
        return float(self.ly) / (self.nny - 1)

    @property
    def cell_size(self) -> np.ndarray:
        return np.array([self.hx, self.hy], dtype=float)

    @property
    def min_cell_size(self) -> float:
        return min(self.hx, self.hy)

    @property
    def cell_area(self) -> float:
        return self.hx * self.hy

    def node_id(self, i: int, j: int) -> int:
        return int(j) * self.nnx + int(i)

    def contains(self, x: np.ndarray) -> np.ndarray:
        """Boolean mask of points inside the closed grid rectangle."""
        x = np.atleast_2d(np.asarray(x, dtype=float))
        return (
            (x[:, 0] >= self.x0) & (x[:, 0] <= self.x0 + self.lx)
            & (x[:, 1] >= self.y0) & (x[:, 1] <= self.y0 + self.ly)
        )

    def check_inside(self, x: np.ndarray, what: str = "particle") -> None:
        inside = self.contains(x)
        if not np.all(inside):
            bad = int(np.flatnonzero(~inside)[0])
            xb = np.atleast_2d(x)[bad]
            raise OutOfDomainError(
                f"{what} {bad} at ({xb[0]:.6e}, {xb[1]:.6e}) is outside the grid "
                f"[{self.x0}, {self.x0 + self.lx}] x [{self.y0}, {self.y0 + self.ly}]"
            )

    def cell_of(self, x: np.ndarray) -> np.ndarray:
        """Lower-left node indices ``(i, j)`` of the cells enclosing ``x``.

        Points on the upper/right boundary belong to the last cell.
        """
        x = np.atleast_2d(np.asarray(x, dtype=float))
        i = np.floor((x[:, 0] - self.x0) / self.hx).astype(int)
        j = np.floor((x[:, 1] - self.y0) / self.hy).astype(int)
        i = np.clip(i, 0, self.nnx - 2)
        j = np.clip(j, 0, self.nny - 2)
        return np.column_stack([i, j])

    def adjacent_nodes(self, x: np.ndarray) -> np.ndarray:
        """The four node ids of the cell enclosing a single point ``x``."""
        self.check_inside(x)
        i, j = self.cell_of(x)[0]
        n1 = self.node_id(i, j)
        return np.array([n1, n1 + 1, n1 + self.nnx + 1, n1 + self.nnx], dtype=int)

    def shape_functions(self, x: np.ndarray):
        """Node ids, weights ``(4,)`` and gradients ``(4, 2)`` of the cell enclosing ``x``."""
        ids = self.adjacent_nodes(x)
        h = (self.hx, self.hy)
        w = np.zeros(4)
        dw = np.zeros((4, 2))
        for c, n in enumerate(ids):
            w[c], dw[c] = shape_and_gradient(x, self.nodes[n], h, upper=(c in (1, 2), c >= 2))
        return ids, w, dw

    def nodes_for_particles(self, x: np.ndarray) -> np.ndarray:
        """Sorted unique ids of every node supporting any of the points ``x``."""
        x = np.atleast_2d(np.asarray(x, dtype=float))
        if x.shape[0] == 0:
            return np.zeros(0, dtype=int)
        self.check_inside(x, what="rigid particle")
        ij = self.cell_of(x)
        n1 = ij[:, 1] * self.nnx + ij[:, 0]
        ids = np.concatenate([n1, n1 + 1, n1 + self.nnx + 1, n1 + self.nnx])
        return np.unique(ids)

    # ------------------------------------------------------------------
    # boundary conditions
    # ------------------------------------------------------------------

    def fix_nodes(self, ids: Iterable[int], axes: Sequence[int] = (0, 1)) -> None:
        ids = np.asarray(list(ids), dtype=int)
        for a in axes:
            self.fixed[ids, int(a)] = True

    def edge_nodes(self, side: str) -> np.ndarray:
        """Node ids on one edge: ``'bottom' | 'top' | 'left' | 'right'``."""
        side = side.strip().lower()
        if side == "bottom":
            return np.arange(self.nnx, dtype=int)
        if side == "top":
            return (self.nny - 1) * self.nnx + np.arange(self.nnx, dtype=int)
        if side == "left":
            return np.arange(self.nny, dtype=int) * self.nnx
        if side == "right":
            return np.arange(self.nny, dtype=int) * self.nnx + (self.nnx - 1)
        raise ValueError(f"Unknown grid edge '{side}'. Use bottom, top, left or right.")

    def fix_edge(self, side: str, axes: Sequence[int] = (0, 1)) -> None:
        self.fix_nodes(self.edge_nodes(side), axes)

    # ------------------------------------------------------------------
    # per-step state
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Zero the accumulators in place (fixed flags are kept)."""
        self.mass[:] = 0.0
        self.momentum[:] = 0.0
        self.force[:] = 0.0

    def velocity(self, small_mass: float = DEFAULT_SMALL_MASS) -> np.ndarray:
        """Nodal velocity ``momentum / mass``; zero on nodes with mass <= small_mass."""
        v = np.zeros_like(self.momentum)
        active = self.mass > small_mass
        v[active] = self.momentum[active] / self.mass[active, None]
        return v

    def total_mass(self) -> float:
        return float(np.sum(self.mass))

    def total_momentum(self) -> np.ndarray:
        return np.sum(self.momentum, axis=0)
