"""Run-time info printing utilities."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo
from typing import List

from mpm_phasefield.config import SimulationConfig
from mpm_phasefield.fem.mesh import PhaseFieldMesh
from mpm_phasefield.grid import Grid
from mpm_phasefield.particles import ParticleStore
from mpm_phasefield.rigid import RigidBody


def _fmt_pa(x: float) -> str:
    x = float(x)
    if abs(x) >= 1e9:
        return f"{x/1e9:.3g} GPa"
    if abs(x) >= 1e6:
        return f"{x/1e6:.3g} MPa"
    if abs(x) >= 1e3:
        return f"{x/1e3:.3g} kPa"
    return f"{x:.3g} Pa"


def print_run_header(tag: str) -> None:
    # Use a stable timezone so logs are comparable across machines.
    ts = datetime.now(ZoneInfo("Europe/Berlin")).strftime("%Y-%m-%d %H:%M:%S %Z")
    print(f"\n[run] {tag}  start={ts}")


def print_material_summary(config: SimulationConfig) -> None:
    print(f"[material] (deformable) E={_fmt_pa(config.young)}  nu={config.poisson:.3g}  rho={config.density:.4g} kg/m^3")
    print(f"[material] (rigid) E={_fmt_pa(config.rigid_young)}  nu={config.rigid_poisson:.3g}")
    print(f"[material] phase field: l0={config.l0:.4g} m  Gc={config.Gc:.4g} J/m^2  k={config.k:.3g}")


def print_domain_summary(
    particles: ParticleStore,
    bodies: List[RigidBody],
    grid: Grid,
    mesh: PhaseFieldMesh,
) -> None:
    deform = particles.deformable
    print("[domain] initial configuration:")
    if deform.size:
        print(f"[domain]   single particle mass          : {particles.mass[deform[0]]:+.6e}")
    print(f"[domain]   total mass (deformable)       : {particles.total_mass(deform):+.6e}")
    print(f"[domain]   deformable particles          : {deform.size}")
    print(f"[domain]   rigid particles               : {particles.rigid.size} in {len(bodies)} bodies")
    print(f"[domain]   total particles               : {len(particles)}")
    print(f"[domain]   grid nodes                    : {grid.n_nodes}  (h = {grid.hx:.4g} x {grid.hy:.4g} m)")
    print(f"[domain]   phase-field elements          : {mesh.n_elems}  (h = {mesh.dx:.4g} x {mesh.dy:.4g} m)")


def print_time_summary(dt: float, t_end: float) -> None:
    print(f"[time] dt={dt:.6e} s  t_end={t_end:.6e} s  steps~{int(t_end / dt) + 1}")
