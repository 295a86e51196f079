"""Output and post-processing utilities."""

from mpm_phasefield.output.energy import EnergyBalance, EnergyHistory, compute_global_energies
from mpm_phasefield.output.vtk_export import (
    SnapshotWriter,
    export_phase_field,
    write_vtk_particles,
    write_vtk_unstructured_grid,
)

__all__ = [
    "EnergyBalance",
    "EnergyHistory",
    "compute_global_energies",
    "SnapshotWriter",
    "export_phase_field",
    "write_vtk_particles",
    "write_vtk_unstructured_grid",
]
