"""mpm_phasefield package (explicit MPM with AT2 phase-field brittle fracture)."""

from .material_point import DEFORMABLE, RIGID, MaterialPoint
from .particles import ParticleStore
from .grid import DEFAULT_SMALL_MASS, Grid, OutOfDomainError
from .basis import shape_and_gradient
from .constitutive import amor_stress, degradation, tensile_energy, update_stress_and_history
from .transfer import grid_to_particles, particles_to_grid, update_grid_momentum
from .rigid import RigidBody, advance_rigid_bodies, enforce_rigid_bodies, make_rigid_body
from .fem import PhaseFieldMesh, solve_phase_field
from .config import SimulationConfig, stable_time_step
from .solver import MPMPhaseFieldSolver, run_simulation

__all__ = [
    "DEFORMABLE", "RIGID", "MaterialPoint",
    "ParticleStore",
    "DEFAULT_SMALL_MASS", "Grid", "OutOfDomainError",
    "shape_and_gradient",
    "amor_stress", "degradation", "tensile_energy", "update_stress_and_history",
    "grid_to_particles", "particles_to_grid", "update_grid_momentum",
    "RigidBody", "advance_rigid_bodies", "enforce_rigid_bodies", "make_rigid_body",
    "PhaseFieldMesh", "solve_phase_field",
    "SimulationConfig", "stable_time_step",
    "MPMPhaseFieldSolver", "run_simulation",
]
