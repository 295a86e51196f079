"""Structured Q4 mesh carrying the phase field.

The phase-field mesh is independent of the mechanical grid (its extent and
resolution are configured separately). Particles are binned into elements
with :meth:`PhaseFieldMesh.update`; since particles move, the binning is
recomputed after every mechanical step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from mpm_phasefield.fem.q4 import q4_global_gradients, q4_shape_many
from mpm_phasefield.grid import OutOfDomainError
from mpm_phasefield.particles import ParticleStore


def structured_quad_mesh(L: float, H: float, nx: int, ny: int, x0: float = 0.0, y0: float = 0.0):
    xs = x0 + np.linspace(0.0, L, nx + 1)
    ys = y0 + np.linspace(0.0, H, ny + 1)
    nodes = np.array([[x, y] for y in ys for x in xs], dtype=float)

    def nid(i, j):  # i along x, j along y
        return j * (nx + 1) + i

    elems = []
    for j in range(ny):
        for i in range(nx):
            n1 = nid(i, j)
            n2 = nid(i + 1, j)
            n3 = nid(i + 1, j + 1)
            n4 = nid(i, j + 1)
            elems.append([n1, n2, n3, n4])
    return nodes, np.array(elems, dtype=int)


OUT_OF_DOMAIN_MODES = ("raise", "clamp")


@dataclass
class PhaseFieldMesh:
    lx: float
    ly: float
    nex: int
    ney: int
    x0: float = 0.0
    y0: float = 0.0
    out_of_domain: str = "raise"

    nodes: np.ndarray = field(init=False, repr=False)
    elems: np.ndarray = field(init=False, repr=False)
    particle_elem: np.ndarray = field(init=False, repr=False)
    elem_offsets: np.ndarray = field(init=False, repr=False)
    elem_particles: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.nex = int(self.nex)
        self.ney = int(self.ney)
        if self.nex < 1 or self.ney < 1:
            raise ValueError(f"Phase-field mesh needs at least one element per direction (got {self.nex} x {self.ney})")
        mode = (self.out_of_domain or "raise").strip().lower()
        if mode not in OUT_OF_DOMAIN_MODES:
            raise ValueError(f"Unknown out_of_domain='{self.out_of_domain}'. Use 'raise' or 'clamp'.")
        self.out_of_domain = mode
        self.nodes, self.elems = structured_quad_mesh(self.lx, self.ly, self.nex, self.ney, self.x0, self.y0)
        self.particle_elem = np.zeros(0, dtype=int)
        self.elem_offsets = np.zeros(self.n_elems + 1, dtype=int)
        self.elem_particles = np.zeros(0, dtype=int)

    @property
    def n_nodes(self) -> int:
        return int(self.nodes.shape[0])

    @property
    def n_elems(self) -> int:
        return int(self.elems.shape[0])

    @property
    def dx(self) -> float:
        return float(self.lx) / self.nex

    @property
    def dy(self) -> float:
        return float(self.ly) / self.ney

    # ------------------------------------------------------------------
    # point location
    # ------------------------------------------------------------------

    def _guard(self, x: np.ndarray) -> np.ndarray:
        """Apply the out-of-domain policy; returns the points used for lookup."""
        x = np.atleast_2d(np.asarray(x, dtype=float))
        xmax = self.x0 + self.lx
        ymax = self.y0 + self.ly
        outside = (x[:, 0] < self.x0) | (x[:, 0] > xmax) | (x[:, 1] < self.y0) | (x[:, 1] > ymax)
        if not np.any(outside):
            return x
        bad = np.flatnonzero(outside)
        xb = x[bad[0]]
        msg = (
            f"{bad.size} point(s) outside the phase-field mesh "
            f"[{self.x0}, {xmax}] x [{self.y0}, {ymax}], first at ({xb[0]:.6e}, {xb[1]:.6e})"
        )
        if self.out_of_domain == "raise":
            raise OutOfDomainError(msg)
        print(f"[phase-field] Warning: {msg}; clamping onto the mesh boundary")
        xc = x.copy()
        xc[:, 0] = np.clip(xc[:, 0], self.x0, xmax)
        xc[:, 1] = np.clip(xc[:, 1], self.y0, ymax)
        return xc

    def locate(self, x: np.ndarray) -> np.ndarray:
        """Element id enclosing each point (upper/right boundary -> last element)."""
        return self._elem_index(self._guard(x))

    def _elem_index(self, x: np.ndarray) -> np.ndarray:
        i = np.floor((x[:, 0] - self.x0) / self.dx).astype(int)
        j = np.floor((x[:, 1] - self.y0) / self.dy).astype(int)
        i = np.clip(i, 0, self.nex - 1)
        j = np.clip(j, 0, self.ney - 1)
        return j * self.nex + i

    def adjacent_nodes(self, x: np.ndarray) -> np.ndarray:
        """Node ids of the element enclosing the single point ``x``."""
        return self.elems[int(self.locate(x)[0])].copy()

    def shape_functions(self, x: np.ndarray, elem_ids: Optional[np.ndarray] = None):
        """Q4 values and physical gradients at points ``x``.

        Returns
        -------
        elem_ids : (n,) int
        N, dN_dx, dN_dy : (n, 4) float
        """
        x = self._guard(x)
        if elem_ids is None:
            elem_ids = self._elem_index(x)
        lower_left = self.nodes[self.elems[elem_ids, 0]]
        xi = 2.0 * (x[:, 0] - lower_left[:, 0]) / self.dx - 1.0
        eta = 2.0 * (x[:, 1] - lower_left[:, 1]) / self.dy - 1.0
        xi = np.clip(xi, -1.0, 1.0)
        eta = np.clip(eta, -1.0, 1.0)
        N, dN_dxi, dN_deta = q4_shape_many(xi, eta)
        dN_dx, dN_dy = q4_global_gradients(dN_dxi, dN_deta, self.dx, self.dy)
        return elem_ids, N, dN_dx, dN_dy

    def interpolate(self, values: np.ndarray, x: np.ndarray) -> np.ndarray:
        """Interpolate nodal ``values`` at the points ``x``."""
        elem_ids, N, _, _ = self.shape_functions(x)
        return np.sum(N * np.asarray(values, dtype=float)[self.elems[elem_ids]], axis=1)

    # ------------------------------------------------------------------
    # particle binning
    # ------------------------------------------------------------------

    def update(self, particles: ParticleStore, idx: Optional[np.ndarray] = None) -> None:
        """Bin the particles ``idx`` (default: deformable ones) into elements.

        ``particle_elem`` has one entry per particle of the store (``-1`` for
        particles that are not binned); ``elem_particles[elem_offsets[e]:
        elem_offsets[e + 1]]`` lists the particles of element ``e``.
        """
        if idx is None:
            idx = particles.deformable
        idx = np.asarray(idx, dtype=int)
        pe = np.full(len(particles), -1, dtype=int)
        if idx.size:
            pe[idx] = self.locate(particles.x[idx])
        self.particle_elem = pe

        order = np.argsort(pe[idx], kind="stable")
        self.elem_particles = idx[order]
        counts = np.bincount(pe[idx], minlength=self.n_elems)
        self.elem_offsets = np.concatenate([[0], np.cumsum(counts)]).astype(int)

    def particles_in(self, e: int) -> np.ndarray:
        return self.elem_particles[self.elem_offsets[e]:self.elem_offsets[e + 1]]
