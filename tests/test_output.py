"""VTK snapshots and energy bookkeeping."""

import numpy as np
import pandas as pd
import pytest

from mpm_phasefield.fem import PhaseFieldMesh
from mpm_phasefield.linear_elastic import shear_bulk_moduli
from mpm_phasefield.output import (
    EnergyBalance,
    EnergyHistory,
    SnapshotWriter,
    compute_global_energies,
    export_phase_field,
    write_vtk_particles,
)
from mpm_phasefield.particles import ParticleStore


def small_store():
    p = ParticleStore.from_positions([[0.1, 0.2], [0.6, 0.7], [0.3, 0.9]], np.full(3, 0.01))
    p.mass[:] = [1.0, 2.0, 3.0]
    p.velocity[:] = [[1.0, 0.0], [0.0, 2.0], [0.0, 0.0]]
    return p


def test_write_particles(tmp_path):
    path = tmp_path / "mp.vtk"
    write_vtk_particles(str(path), small_store(), verbose=False)
    text = path.read_text()
    assert "DATASET POLYDATA" in text
    assert "POINTS 3 float" in text
    assert "VERTICES 3 6" in text
    assert "VECTORS velocity float" in text
    assert "SCALARS stress float 3" in text


def test_export_phase_field(tmp_path):
    mesh = PhaseFieldMesh(1.0, 1.0, 2, 3)
    path = tmp_path / "pf.vtk"
    export_phase_field(str(path), mesh, np.linspace(0.0, 1.0, mesh.n_nodes), verbose=False)
    text = path.read_text()
    assert "DATASET UNSTRUCTURED_GRID" in text
    assert f"CELLS {mesh.n_elems} {5 * mesh.n_elems}" in text
    assert "SCALARS damage float 1" in text


class _FakeSolver:
    def __init__(self):
        self.particles = small_store()
        self.mesh = PhaseFieldMesh(1.0, 1.0, 2, 2)
        self.phase_field = np.ones(self.mesh.n_nodes)


def test_snapshot_writer_names(tmp_path):
    writer = SnapshotWriter(str(tmp_path / "out"), "Beam", verbose=False)
    writer(0, 0.0, _FakeSolver())
    writer(100, 1e-6, _FakeSolver())
    assert (tmp_path / "out" / "Beam0.vtk").exists()
    assert (tmp_path / "out" / "Beam_phase100.vtk").exists()
    assert [w[0] for w in writer.written] == [0, 100]


def test_energies_of_intact_moving_particles():
    p = small_store()
    shear, bulk = shear_bulk_moduli(1e6, 0.25)
    p.shear[:] = shear
    p.bulk[:] = bulk
    mesh = PhaseFieldMesh(1.0, 1.0, 2, 2)
    eb = compute_global_energies(p, mesh, np.ones(mesh.n_nodes), k=0.0, l0=0.1, Gc=1.0, step=3, time=0.5)

    assert eb.W_kinetic == pytest.approx(0.5 * 1.0 * 1.0 + 0.5 * 2.0 * 4.0)
    assert eb.W_elastic == pytest.approx(0.0)
    assert eb.W_fracture == pytest.approx(0.0)
    assert eb.W_total == pytest.approx(eb.W_kinetic)
    assert eb.momentum_y == pytest.approx(4.0)
    assert eb.mass == pytest.approx(6.0)


def test_broken_field_has_fracture_energy():
    p = small_store()
    mesh = PhaseFieldMesh(1.0, 1.0, 2, 2)
    eb = compute_global_energies(p, mesh, np.zeros(mesh.n_nodes), k=0.0, l0=0.1, Gc=2.0)
    # phi = 0 everywhere: Gc / (2 l0) per unit volume
    assert eb.W_fracture == pytest.approx(2.0 / 0.2 * p.volume.sum())


def test_history_to_csv(tmp_path):
    hist = EnergyHistory()
    for s in range(3):
        eb = EnergyBalance(step=s, time=s * 1e-6, W_kinetic=float(s))
        eb.compute_total()
        hist.append(eb)
    path = tmp_path / "energy.csv"
    hist.to_csv(str(path))

    df = pd.read_csv(path)
    assert len(df) == 3
    assert list(df["step"]) == [0, 1, 2]
    assert df["W_total"].iloc[-1] == pytest.approx(2.0)
