"""VTK export of particle and phase-field snapshots.

Legacy ASCII VTK, readable by ParaView:

  - particles: POLYDATA with one vertex per material point and point data
    (velocity, stress, strain, phase, history, volume, color, role)
  - phase-field mesh: UNSTRUCTURED_GRID of quads with the nodal phase field
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import numpy as np

from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.particles import ParticleStore


def _write_point_data(f, n: int, point_data: Dict[str, np.ndarray]) -> None:
    f.write(f"\nPOINT_DATA {n}\n")
    for field_name, values in point_data.items():
        values = np.asarray(values, dtype=float)
        if values.shape[0] != n:
            print(f"Warning: {field_name} has wrong size ({values.shape[0]} != {n}), skipping")
            continue
        if values.ndim == 1:
            f.write(f"SCALARS {field_name} float 1\n")
            f.write("LOOKUP_TABLE default\n")
            for val in values:
                f.write(f"{float(val):.6e}\n")
        elif values.shape[1] == 2:
            f.write(f"VECTORS {field_name} float\n")
            for v in values:
                f.write(f"{v[0]:.6e} {v[1]:.6e} 0.000000e+00\n")
        else:
            f.write(f"SCALARS {field_name} float {values.shape[1]}\n")
            f.write("LOOKUP_TABLE default\n")
            for v in values:
                f.write(" ".join(f"{float(c):.6e}" for c in v) + "\n")


def write_vtk_unstructured_grid(
    filename: str,
    nodes: np.ndarray,
    elems: np.ndarray,
    point_data: Optional[Dict[str, np.ndarray]] = None,
    cell_data: Optional[Dict[str, np.ndarray]] = None,
    verbose: bool = True,
) -> None:
    """Write VTK unstructured grid file (legacy ASCII format).

    Parameters
    ----------
    filename : str
        Output .vtk filename
    nodes : np.ndarray
        Node coordinates [n_nodes, ndim]
    elems : np.ndarray
        Element connectivity [n_elem, n_nodes_per_elem]
    point_data : dict
        Nodal data {field_name: values[n_nodes]}
    cell_data : dict
        Element data {field_name: values[n_elem]}
    """
    n_nodes = nodes.shape[0]
    n_elem = elems.shape[0]

    # Ensure 3D coordinates (pad with zeros if 2D)
    if nodes.shape[1] == 2:
        nodes_3d = np.column_stack([nodes, np.zeros(n_nodes)])
    else:
        nodes_3d = nodes

    with open(filename, "w") as f:
        f.write("# vtk DataFile Version 3.0\n")
        f.write("MPM phase field\n")
        f.write("ASCII\n")
        f.write("DATASET UNSTRUCTURED_GRID\n")

        f.write(f"POINTS {n_nodes} float\n")
        for node in nodes_3d:
            f.write(f"{node[0]:.6e} {node[1]:.6e} {node[2]:.6e}\n")

        n_nodes_per_elem = elems.shape[1]
        cell_size = n_elem * (1 + n_nodes_per_elem)
        f.write(f"\nCELLS {n_elem} {cell_size}\n")
        for elem in elems:
            f.write(f"{n_nodes_per_elem}")
            for node_id in elem:
                f.write(f" {int(node_id)}")
            f.write("\n")

        # Cell types (9 = VTK_QUAD for quads)
        f.write(f"\nCELL_TYPES {n_elem}\n")
        cell_type = 9 if n_nodes_per_elem == 4 else 5  # QUAD or TRIANGLE
        for _ in range(n_elem):
            f.write(f"{cell_type}\n")

        if point_data:
            _write_point_data(f, n_nodes, point_data)

        if cell_data:
            f.write(f"\nCELL_DATA {n_elem}\n")
            for field_name, values in cell_data.items():
                values = np.asarray(values).flatten()
                if len(values) != n_elem:
                    print(f"Warning: {field_name} has wrong size ({len(values)} != {n_elem}), skipping")
                    continue

                f.write(f"SCALARS {field_name} float 1\n")
                f.write("LOOKUP_TABLE default\n")
                for val in values:
                    f.write(f"{float(val):.6e}\n")

    if verbose:
        print(f"[vtk] written: {filename}")


def write_vtk_particles(filename: str, particles: ParticleStore, verbose: bool = True) -> None:
    """Write all material points as VTK POLYDATA vertices."""
    n = len(particles)
    with open(filename, "w") as f:
        f.write("# vtk DataFile Version 3.0\n")
        f.write("MPM material points\n")
        f.write("ASCII\n")
        f.write("DATASET POLYDATA\n")

        f.write(f"POINTS {n} float\n")
        for x in particles.x:
            f.write(f"{x[0]:.6e} {x[1]:.6e} 0.000000e+00\n")

        f.write(f"\nVERTICES {n} {2 * n}\n")
        for i in range(n):
            f.write(f"1 {i}\n")

        if n:
            _write_point_data(
                f,
                n,
                {
                    "velocity": particles.velocity,
                    "stress": particles.stress,
                    "strain": particles.strain,
                    "phase": particles.phase,
                    "history": particles.history,
                    "volume": particles.volume,
                    "color": particles.color,
                    "role": particles.role.astype(float),
                },
            )

    if verbose:
        print(f"[vtk] written: {filename}")


def export_phase_field(filename: str, mesh: PhaseFieldMesh, phase: np.ndarray, verbose: bool = True) -> None:
    """Export the nodal phase field and its damage ``1 - phi``."""
    phase = np.asarray(phase, dtype=float)
    write_vtk_unstructured_grid(
        filename,
        mesh.nodes,
        mesh.elems,
        point_data={"phase": phase, "damage": 1.0 - phase},
        verbose=verbose,
    )


class SnapshotWriter:
    """Snapshot callback writing particle and phase-field VTK files.

    Files are ``<output_dir>/<prefix><step>.vtk`` for the particles and
    ``<output_dir>/<prefix>_phase<step>.vtk`` for the mesh.
    """

    def __init__(self, output_dir: str, prefix: str, verbose: bool = True):
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.verbose = verbose
        self.written = []

    def __call__(self, step: int, time: float, solver) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        pfile = self.output_dir / f"{self.prefix}{step}.vtk"
        mfile = self.output_dir / f"{self.prefix}_phase{step}.vtk"
        write_vtk_particles(str(pfile), solver.particles, verbose=self.verbose)
        export_phase_field(str(mfile), solver.mesh, solver.phase_field, verbose=self.verbose)
        self.written.append((int(step), float(time), pfile, mfile))
