"""Run configuration for the MPM phase-field solver.

All constants are set once before the time loop. The defaults reproduce the
three-point bending benchmark (concrete beam, SI units).
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

import yaml

from mpm_phasefield.grid import DEFAULT_SMALL_MASS, Grid
from mpm_phasefield.linear_elastic import wave_speed


@dataclass
class SimulationConfig:
    # Deformable material
    density: float = 2400.0       # kg/m^3
    young: float = 70.0e9         # Pa
    poisson: float = 0.3

    # Rigid bodies: artificially stiff so they do not deform if ever scattered
    rigid_young: float = 70.0e18  # Pa
    rigid_poisson: float = 0.3

    # Phase field
    k: float = 1.0e-18            # residual stiffness
    l0: float = 0.0005            # length scale [m]
    Gc: float = 1.5e5             # fracture energy [J/m^2]
    pf_diagonal_eps: float = 1.0e-10

    # Loads
    gravity: Tuple[float, float] = (0.0, 0.0)
    external_forces: bool = False
    impactor_velocity: float = 1.0  # m/s, downward

    # Time integration
    t_end: float = 0.001
    dt: Optional[float] = None    # None -> dt_factor * h_min / sqrt(E / rho)
    dt_factor: float = 0.2

    # Discretisation
    ppc: Tuple[int, int] = (3, 3)
    grid_lx: float = 0.0415
    grid_ly: float = 0.00575
    grid_nx: int = 166            # cells along x
    grid_ny: int = 20             # cells along y
    mesh_lx: Optional[float] = None  # None -> same extent as the grid
    mesh_ly: Optional[float] = None
    mesh_nx: int = 166
    mesh_ny: int = 20

    # Numerical guards
    small_mass: float = DEFAULT_SMALL_MASS
    out_of_domain: str = "raise"  # raise | clamp

    # Output
    output_interval: int = 100
    output_dir: str = "_img"
    output_prefix: str = "ThreePointBending"
    write_vtk: bool = True
    verbose: bool = True

    def __post_init__(self):
        """Normalise and validate parameters."""
        self.gravity = tuple(float(g) for g in self.gravity)
        if len(self.gravity) != 2:
            raise ValueError(f"gravity must have two components (got {self.gravity})")
        self.ppc = tuple(int(p) for p in self.ppc)
        if len(self.ppc) != 2 or min(self.ppc) < 1:
            raise ValueError(f"ppc must be two positive integers (got {self.ppc})")

        mode = (self.out_of_domain or "raise").strip().lower()
        aliases = {"error": "raise", "fail": "raise", "raise": "raise", "clip": "clamp", "clamp": "clamp"}
        if mode not in aliases:
            raise ValueError(f"Unknown out_of_domain='{self.out_of_domain}'. Use 'raise' or 'clamp'.")
        self.out_of_domain = aliases[mode]

        for name in ("density", "young", "rigid_young", "l0", "Gc", "t_end", "dt_factor",
                     "grid_lx", "grid_ly", "small_mass"):
            if float(getattr(self, name)) <= 0.0:
                raise ValueError(f"{name} must be positive (got {getattr(self, name)})")
        for name in ("poisson", "rigid_poisson"):
            nu = float(getattr(self, name))
            if not (-1.0 < nu < 0.5):
                raise ValueError(f"{name} must lie in (-1, 0.5) (got {nu})")
        if not (0.0 <= float(self.k) < 1.0):
            raise ValueError(f"k must lie in [0, 1) (got {self.k})")
        if self.dt is not None and float(self.dt) <= 0.0:
            raise ValueError(f"dt must be positive when given (got {self.dt})")
        if int(self.output_interval) < 1:
            raise ValueError(f"output_interval must be >= 1 (got {self.output_interval})")
        for name in ("grid_nx", "grid_ny", "mesh_nx", "mesh_ny"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1 (got {getattr(self, name)})")

        if self.mesh_lx is None:
            self.mesh_lx = self.grid_lx
        if self.mesh_ly is None:
            self.mesh_ly = self.grid_ly

    # ------------------------------------------------------------------
    # serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["gravity"] = list(self.gravity)
        data["ppc"] = list(self.ppc)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def save_yaml(self, filepath: str):
        """Save to YAML file"""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def load_yaml(cls, filepath: str) -> "SimulationConfig":
        """Load from YAML file"""
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def save_json(self, filepath: str):
        """Save to JSON file"""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load_json(cls, filepath: str) -> "SimulationConfig":
        """Load from JSON file"""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)


def stable_time_step(config: SimulationConfig, grid: Grid) -> float:
    """Fixed explicit step ``dt_factor * h_min / c`` with ``c = sqrt(E / rho)``.

    Evaluated once with the undamaged modulus; ``config.dt`` overrides it.
    """
    if config.dt is not None:
        return float(config.dt)
    c = wave_speed(config.young, config.density)
    return float(config.dt_factor) * grid.min_cell_size / c
