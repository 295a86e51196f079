"""Finite-element side of the coupling: Q4 mesh and AT2 phase-field solve."""

from mpm_phasefield.fem.mesh import PhaseFieldMesh, structured_quad_mesh
from mpm_phasefield.fem.phase_field import assemble_phase_field_system, solve_phase_field

__all__ = [
    "PhaseFieldMesh",
    "structured_quad_mesh",
    "assemble_phase_field_system",
    "solve_phase_field",
]
