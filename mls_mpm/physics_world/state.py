"""Dataclasses describing the published simulation state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np


@dataclass(frozen=True)
class ParticleSnapshot:
    positions: np.ndarray  # (n, 2) unit domain coordinates, read-only
    colors: np.ndarray  # (n,) 0xRRGGBB, read-only

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[Tuple[np.ndarray, int]]:
        for position, color in zip(self.positions, self.colors):
            yield position, int(color)


@dataclass(frozen=True)
class WorldSnapshot:
    step_index: int
    time: float  # seconds (s)
    particles: ParticleSnapshot

    def __len__(self) -> int:
        return len(self.particles)
