"""Benchmark set-ups.

``three_point_bending``: a notched concrete beam resting on two rigid roller
supports and loaded at mid-span by a rigid roller moving down at constant
velocity. The background grid carries three extra cells on the left, right
and top of the beam; its bottom edge is fixed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from mpm_phasefield.config import SimulationConfig
from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.generation import assign_material, circle, notched_rectangle
from mpm_phasefield.grid import Grid
from mpm_phasefield.particles import ParticleStore
from mpm_phasefield.rigid import RigidBody, make_rigid_body


ROLLER_COLOR = 1.0
IMPACTOR_COLOR = 2.0
BEAM_COLOR = 3.0


@dataclass
class ThreePointBendingGeometry:
    span: float = 0.04            # beam length [m]
    depth: float = 0.003          # beam height [m]
    roller_radius: float = 0.0005
    support_offset: float = 0.0005  # beam end -> support centre
    pad_cells: int = 3            # empty grid cells left/right/top
    gap: float = 0.0              # impactor <-> beam gap
    notch_half_cells: float = 1.0   # notch half width in grid cells
    notch_depth_cells: float = 5.0


def three_point_bending(
    config: SimulationConfig,
    geometry: Optional[ThreePointBendingGeometry] = None,
) -> Tuple[Grid, PhaseFieldMesh, ParticleStore, List[RigidBody]]:
    """Build grid, phase-field mesh, particles and rigid bodies."""
    g = geometry if geometry is not None else ThreePointBendingGeometry()
    grid = Grid(config.grid_lx, config.grid_ly, config.grid_nx + 1, config.grid_ny + 1)
    grid.fix_edge("bottom", axes=(0, 1))

    pad = g.pad_cells * grid.hx
    r = g.roller_radius
    ppc = config.ppc
    rho = config.density

    left = assign_material(
        circle(grid, [g.support_offset + pad, r], r, ppc),
        rho, config.rigid_young, config.rigid_poisson, color=ROLLER_COLOR,
    )
    right = assign_material(
        circle(grid, [g.span - g.support_offset + pad, r], r, ppc),
        rho, config.rigid_young, config.rigid_poisson, color=ROLLER_COLOR,
    )

    xmid = pad + 0.5 * g.span
    beam_box = np.array([[pad, 2.0 * r], [g.span + pad, 2.0 * r + g.depth]])
    notch_box = np.array([
        [xmid - g.notch_half_cells * grid.hx, 2.0 * r],
        [xmid + g.notch_half_cells * grid.hx, 2.0 * r + g.notch_depth_cells * grid.hy],
    ])
    beam = assign_material(
        notched_rectangle(grid, beam_box, notch_box, ppc),
        rho, config.young, config.poisson, color=BEAM_COLOR,
    )

    impactor = assign_material(
        circle(grid, [xmid, g.depth + 3.0 * r + g.gap], r, ppc),
        rho, config.rigid_young, config.rigid_poisson, color=IMPACTOR_COLOR,
    )

    particles = ParticleStore.empty(0)
    ids_left = particles.append(left)
    ids_right = particles.append(right)
    particles.append(beam)
    ids_mid = particles.append(impactor)

    bodies = [
        make_rigid_body("roller_left", particles, ids_left, (0.0, 0.0)),
        make_rigid_body("roller_right", particles, ids_right, (0.0, 0.0)),
        make_rigid_body("impactor", particles, ids_mid, (0.0, -float(config.impactor_velocity))),
    ]

    mesh = PhaseFieldMesh(
        config.mesh_lx, config.mesh_ly, config.mesh_nx, config.mesh_ny,
        out_of_domain=config.out_of_domain,
    )
    return grid, mesh, particles, bodies
