"""Explicit MPM time loop coupled to the phase-field solve.

One step (``MPMPhaseFieldSolver.step``)::

    1. phase-field solve on the auxiliary mesh (uses the current history)
    2. grid reset
    3. P2G: mass, momentum, internal force (+ external force if enabled)
    4. nodal momentum update, fixed-DOF pass, rigid-body overrides
    5. G2P: velocity, centroid, deformation gradient, strain
    6. phase lookup at the new centroids, Amor stress, history, volume
    7. rigid-particle transport
    8. re-binning of the particles into the phase-field mesh
    9. snapshot every ``output_interval`` steps
   10. t += dt

The phase-field solve and the mechanical update are strictly sequential; the
grid is shared by all particles and reset at every step.
"""

from __future__ import annotations

from typing import Callable, List, Optional

import numpy as np

from mpm_phasefield.config import SimulationConfig, stable_time_step
from mpm_phasefield.constitutive import update_stress_and_history
from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.fem.phase_field import solve_phase_field
from mpm_phasefield.grid import Grid
from mpm_phasefield.output.energy import EnergyHistory, compute_global_energies
from mpm_phasefield.output.vtk_export import SnapshotWriter
from mpm_phasefield.particles import ParticleStore
from mpm_phasefield.rigid import RigidBody, advance_rigid_bodies, enforce_rigid_bodies
from mpm_phasefield.transfer import grid_to_particles, particles_to_grid, update_grid_momentum


SnapshotFn = Callable[[int, float, "MPMPhaseFieldSolver"], None]


class MPMPhaseFieldSolver:
    """State and driver of one simulation run."""

    def __init__(
        self,
        config: SimulationConfig,
        grid: Grid,
        mesh: PhaseFieldMesh,
        particles: ParticleStore,
        bodies: Optional[List[RigidBody]] = None,
        snapshot: Optional[SnapshotFn] = None,
        track_energy: bool = False,
    ):
        self.config = config
        self.grid = grid
        self.mesh = mesh
        self.particles = particles
        self.bodies = list(bodies or [])
        self.snapshot = snapshot
        self.energy = EnergyHistory() if track_energy else None

        self.dt = stable_time_step(config, grid)
        self.time = 0.0
        self.step_count = 0
        self.gravity = np.asarray(config.gravity, dtype=float)
        self.phase_field = np.ones(mesh.n_nodes, dtype=float)

        self.mesh.update(self.particles)

    # ------------------------------------------------------------------
    # sub-steps
    # ------------------------------------------------------------------

    def solve_phase_field(self) -> None:
        solve_phase_field(
            self.phase_field,
            self.mesh,
            self.particles,
            self.config.l0,
            self.config.Gc,
            diagonal_eps=self.config.pf_diagonal_eps,
        )

    def update_grid(self) -> None:
        """Reset, P2G and nodal boundary enforcement."""
        cfg = self.config
        for body in self.bodies:
            body.sync_particles(self.particles, self.time)
        self.grid.reset()
        particles_to_grid(
            self.grid,
            self.particles,
            gravity=self.gravity,
            external_forces=cfg.external_forces,
        )
        update_grid_momentum(self.grid, self.dt)
        enforce_rigid_bodies(self.grid, self.particles, self.bodies)

    def update_particles(self) -> None:
        """G2P plus the constitutive update of the deformable particles."""
        cfg = self.config
        p = self.particles
        idx = p.deformable
        grid_to_particles(self.grid, p, self.dt, idx=idx, small_mass=cfg.small_mass)
        if idx.size == 0:
            return

        p.phase[idx] = self.mesh.interpolate(self.phase_field, p.x[idx])
        update_stress_and_history(p, idx, cfg.k)

        J = np.linalg.det(p.F[idx])
        if np.any(J <= 0.0):
            bad = int(idx[np.flatnonzero(J <= 0.0)[0]])
            raise RuntimeError(
                f"non-positive Jacobian det(F)={np.linalg.det(p.F[bad]):.6e} at particle {bad} "
                f"(step {self.step_count}, t={self.time:.6e})"
            )
        p.volume[idx] = J * p.volume0[idx]

    def step(self) -> None:
        self.solve_phase_field()
        self.update_grid()
        self.update_particles()
        advance_rigid_bodies(self.particles, self.bodies, self.dt)
        self.mesh.update(self.particles)

        self._record_energy()
        if self.step_count % int(self.config.output_interval) == 0:
            self._report()
            if self.snapshot is not None:
                self.snapshot(self.step_count, self.time, self)

        self.time += self.dt
        self.step_count += 1

    def _record_energy(self) -> None:
        if self.energy is None:
            return
        cfg = self.config
        self.energy.append(
            compute_global_energies(
                self.particles, self.mesh, self.phase_field, cfg.k, cfg.l0, cfg.Gc,
                step=self.step_count, time=self.time,
            )
        )

    def _report(self) -> None:
        if self.config.verbose:
            idx = self.particles.deformable
            h_max = float(np.max(self.particles.history[idx])) if idx.size else 0.0
            print(
                f"[step] {self.step_count:6d}  t={self.time:+.6e}"
                f"  phi_min={float(np.min(self.phase_field)):.4f}  H_max={h_max:.4e}"
            )

    # ------------------------------------------------------------------
    # driver
    # ------------------------------------------------------------------

    def run(self, t_end: Optional[float] = None) -> "MPMPhaseFieldSolver":
        """Advance until the accumulated time reaches ``t_end``."""
        t_end = float(self.config.t_end if t_end is None else t_end)
        while self.time < t_end:
            self.step()
        return self


def run_simulation(
    config: SimulationConfig,
    grid: Grid,
    mesh: PhaseFieldMesh,
    particles: ParticleStore,
    bodies: Optional[List[RigidBody]] = None,
    snapshot: Optional[SnapshotFn] = None,
    track_energy: bool = True,
) -> MPMPhaseFieldSolver:
    """Build a solver (with VTK snapshots when ``config.write_vtk``) and run it."""
    if snapshot is None and config.write_vtk:
        snapshot = SnapshotWriter(config.output_dir, config.output_prefix, verbose=config.verbose)
    solver = MPMPhaseFieldSolver(config, grid, mesh, particles, bodies, snapshot=snapshot, track_energy=track_energy)
    return solver.run()
