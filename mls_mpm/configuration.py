"""Scene configuration dataclasses and loader utilities."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from importlib import import_module
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Sequence, Tuple

from .physics_world.solvers.mpm.mpm_materials import Material


_YAML_MODULE: ModuleType | None = None

Vec2 = Tuple[float, float]

SUPPORTED_ARCHS = ("cpu", "gpu", "cuda", "vulkan", "metal")
SUPPORTED_PRECISIONS = ("float32", "float64")


class ConfigurationError(ValueError):
    """Raised when a configuration value cannot drive a simulation."""


def _load_yaml_module() -> ModuleType:
    global _YAML_MODULE
    if _YAML_MODULE is None:
        try:
            _YAML_MODULE = import_module("yaml")
        except ModuleNotFoundError as exc:  # pragma: no cover - dependency hint
            raise ImportError(
                "PyYAML is required to load scene configurations. Install it via 'pip install pyyaml'."
            ) from exc
    return _YAML_MODULE


def _vec2(values: Sequence[float], name: str) -> Vec2:
    try:
        x, y = values
        result = float(x), float(y)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a pair of numbers, got {values!r}") from exc
    if not all(math.isfinite(c) for c in result):
        raise ConfigurationError(f"{name} must be finite, got {values!r}")
    return result


@dataclass
class RuntimeConfig:
    arch: str = "cpu"
    precision: str = "float32"
    cpu_threads: int | None = None  # None lets Taichi pick
    random_seed: int = 0
    debug: bool = False

    def __post_init__(self):
        if self.arch not in SUPPORTED_ARCHS:
            raise ConfigurationError(f"arch must be one of {SUPPORTED_ARCHS}, got {self.arch!r}")
        if self.precision not in SUPPORTED_PRECISIONS:
            raise ConfigurationError(
                f"precision must be one of {SUPPORTED_PRECISIONS}, got {self.precision!r}"
            )
        if self.cpu_threads is not None and self.cpu_threads <= 0:
            raise ConfigurationError(f"cpu_threads must be positive, got {self.cpu_threads}")


@dataclass
class SimulationConfig:
    grid_resolution: int = 80  # cells per axis
    time_step: float = 1e-4  # seconds (s)
    frame_dt: float = 1e-3  # seconds between published frames
    total_frames: int = 200
    gravity: Sequence[float] = (0.0, -200.0)  # domain units per second squared
    max_particles: int = 10_000
    check_stability: bool = True
    debug_interval: int = 0  # print particle statistics every N steps, 0 = never

    def __post_init__(self):
        if int(self.grid_resolution) != self.grid_resolution or self.grid_resolution <= 0:
            raise ConfigurationError(
                f"grid_resolution must be a positive integer, got {self.grid_resolution}"
            )
        self.grid_resolution = int(self.grid_resolution)
        if not self.time_step > 0:
            raise ConfigurationError(f"time_step must be positive, got {self.time_step}")
        if not self.frame_dt > 0:
            raise ConfigurationError(f"frame_dt must be positive, got {self.frame_dt}")
        if self.frame_dt < self.time_step:
            raise ConfigurationError(
                f"frame_dt ({self.frame_dt}) must not be smaller than time_step ({self.time_step})"
            )
        if self.total_frames < 0:
            raise ConfigurationError(f"total_frames must be >= 0, got {self.total_frames}")
        if self.max_particles <= 0:
            raise ConfigurationError(f"max_particles must be positive, got {self.max_particles}")
        if self.debug_interval < 0:
            raise ConfigurationError(f"debug_interval must be >= 0, got {self.debug_interval}")
        self.gravity = _vec2(self.gravity, "gravity")

    @property
    def steps_per_frame(self) -> int:
        return max(1, int(round(self.frame_dt / self.time_step)))

    @property
    def dx(self) -> float:
        return 1.0 / self.grid_resolution


@dataclass
class MaterialConfig:
    particle_mass: float = 1.0
    particle_volume: float = 1.0
    hardening: float = 10.0
    youngs_modulus: float = 1e4
    poisson_ratio: float = 0.2
    snow_compression: float = 2.5e-2  # lower singular value bound is 1 - snow_compression
    snow_stretch: float = 7.5e-3  # upper singular value bound is 1 + snow_stretch
    plastic_jacobian_min: float = 0.6
    plastic_jacobian_max: float = 20.0

    def __post_init__(self):
        if not self.particle_mass > 0:
            raise ConfigurationError(f"particle_mass must be positive, got {self.particle_mass}")
        if not self.particle_volume > 0:
            raise ConfigurationError(f"particle_volume must be positive, got {self.particle_volume}")
        if not self.youngs_modulus > 0:
            raise ConfigurationError(f"youngs_modulus must be positive, got {self.youngs_modulus}")
        if not -1.0 < self.poisson_ratio < 0.5:
            raise ConfigurationError(f"poisson_ratio must lie in (-1, 0.5), got {self.poisson_ratio}")
        if not 0.0 <= self.snow_compression < 1.0:
            raise ConfigurationError(f"snow_compression must lie in [0, 1), got {self.snow_compression}")
        if self.snow_stretch < 0.0:
            raise ConfigurationError(f"snow_stretch must be >= 0, got {self.snow_stretch}")
        if not 0.0 < self.plastic_jacobian_min <= self.plastic_jacobian_max:
            raise ConfigurationError(
                "plastic_jacobian bounds must satisfy 0 < min <= max, "
                f"got [{self.plastic_jacobian_min}, {self.plastic_jacobian_max}]"
            )

    @property
    def snow_singular_value_bounds(self) -> Vec2:
        return 1.0 - self.snow_compression, 1.0 + self.snow_stretch


@dataclass
class BoundaryConfig:
    thickness: float = 0.05  # fraction of the unit domain

    def __post_init__(self):
        if not 0.0 < self.thickness < 0.5:
            raise ConfigurationError(f"boundary thickness must lie in (0, 0.5), got {self.thickness}")


@dataclass
class ObjectConfig:
    """A square block of randomly placed particles."""

    center: Sequence[float]
    material: Material | str | int
    color: int = 0xFFFFFF  # 0xRRGGBB
    particle_count: int = 500
    half_size: float = 0.08
    velocity: Sequence[float] = (0.0, 0.0)

    def __post_init__(self):
        self.center = _vec2(self.center, "center")
        self.velocity = _vec2(self.velocity, "velocity")
        try:
            self.material = Material.parse(self.material)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        if not 0 <= int(self.color) <= 0xFFFFFF:
            raise ConfigurationError(f"color must be a 24-bit RGB value, got {self.color!r}")
        self.color = int(self.color)
        if self.particle_count <= 0:
            raise ConfigurationError(f"particle_count must be positive, got {self.particle_count}")
        if not self.half_size > 0:
            raise ConfigurationError(f"half_size must be positive, got {self.half_size}")
        for axis, c in enumerate(self.center):
            if c - self.half_size <= 0.0 or c + self.half_size >= 1.0:
                raise ConfigurationError(
                    f"object at {self.center} with half_size {self.half_size} leaves the unit domain on axis {axis}"
                )


@dataclass
class SceneConfig:
    scene_name: str = "default"
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    material: MaterialConfig = field(default_factory=MaterialConfig)
    boundary: BoundaryConfig = field(default_factory=BoundaryConfig)
    objects: List[ObjectConfig] = field(default_factory=list)

    def __post_init__(self):
        requested = sum(obj.particle_count for obj in self.objects)
        if requested > self.simulation.max_particles:
            raise ConfigurationError(
                f"scene requests {requested} particles but max_particles is {self.simulation.max_particles}"
            )
        # every particle needs its full 3x3 stencil on the grid
        lo = 0.5 * self.simulation.dx
        hi = 1.0 - lo
        for index, obj in enumerate(self.objects):
            if any(c - obj.half_size < lo or c + obj.half_size > hi for c in obj.center):
                raise ConfigurationError(
                    f"objects[{index}] at {obj.center} with half_size {obj.half_size} leaves "
                    f"the grid interior [{lo}, {hi}) for grid_resolution {self.simulation.grid_resolution}"
                )


def default_scene_config() -> SceneConfig:
    """Three blocks dropped into the box: one elastic, two snow."""
    return SceneConfig(
        scene_name="default",
        objects=[
            ObjectConfig(center=(0.55, 0.45), material=Material.ELASTIC, color=0xED553B),
            ObjectConfig(center=(0.45, 0.65), material=Material.SNOW, color=0xF2B134),
            ObjectConfig(center=(0.55, 0.85), material=Material.SNOW, color=0x068587),
        ],
    )


def _section(cls, raw: Dict[str, Any] | None, name: str):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"section '{name}' must be a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"unknown keys in section '{name}': {', '.join(unknown)}")
    return cls(**raw)


def load_scene_config(config_path: str | Path) -> SceneConfig:
    """Load a scene configuration from YAML."""
    path = Path(config_path).expanduser().resolve()
    with path.open("r", encoding="utf-8") as handle:
        yaml_module = _load_yaml_module()
        raw = yaml_module.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")

    objects = [
        _section(ObjectConfig, entry, f"objects[{index}]")
        for index, entry in enumerate(raw.get("objects") or [])
    ]
    if not objects:
        print(f"Warning: {path.name} defines no objects, the simulation will be empty.")

    return SceneConfig(
        scene_name=raw.get("scene_name", path.stem),
        runtime=_section(RuntimeConfig, raw.get("runtime"), "runtime"),
        simulation=_section(SimulationConfig, raw.get("simulation"), "simulation"),
        material=_section(MaterialConfig, raw.get("material"), "material"),
        boundary=_section(BoundaryConfig, raw.get("boundary"), "boundary"),
        objects=objects,
    )
