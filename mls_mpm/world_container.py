"""High-level orchestration layer: frame cadence around the physics world."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .configuration import SceneConfig, load_scene_config
from .physics_world.state import WorldSnapshot
from .physics_world.world import PhysicsWorld

FrameCallback = Callable[[WorldSnapshot], None]


@dataclass
class WorldContainer:
    """Bundles scene configuration and physics world, and publishes frames."""

    config: SceneConfig
    world: PhysicsWorld
    current_frame: int = 0

    @classmethod
    def from_config(cls, config: SceneConfig, verbose: bool = True) -> "WorldContainer":
        world = PhysicsWorld.from_config(config, verbose=verbose)
        return cls(config=config, world=world)

    @classmethod
    def from_config_file(cls, config_path: str | Path, verbose: bool = True) -> "WorldContainer":
        return cls.from_config(load_scene_config(config_path), verbose=verbose)

    @property
    def steps_per_frame(self) -> int:
        return self.config.simulation.steps_per_frame

    def step(self, dt: float | None = None) -> None:
        """Advance the world by a single step."""
        self.world.step(dt)

    def advance_frame(self) -> WorldSnapshot:
        """Run one frame worth of steps and return the state at the frame boundary."""
        for _ in range(self.steps_per_frame):
            self.step()
        self.current_frame += 1
        return self.world.snapshot()

    def run(self, frames: Optional[int] = None, on_frame: Optional[FrameCallback] = None) -> WorldSnapshot:
        """Execute several frames, handing each completed frame to ``on_frame``."""
        total_frames = frames if frames is not None else self.config.simulation.total_frames
        snapshot = self.world.snapshot()
        for _ in range(total_frames):
            snapshot = self.advance_frame()
            if on_frame is not None:
                on_frame(snapshot)
        return snapshot
