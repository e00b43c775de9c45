import numpy as np
import pytest
import taichi as ti

from mls_mpm import Material, MPMSolver
from mls_mpm.configuration import ObjectConfig, SceneConfig, SimulationConfig
from mls_mpm.scene import add_object


@pytest.fixture(autouse=True)
def taichi_cpu():
    # one thread keeps the atomic scatter order, and therefore results, reproducible
    ti.init(arch=ti.cpu, default_fp=ti.f64, cpu_max_num_threads=1, random_seed=0)
    yield
    ti.reset()


def make_solver(**kwargs) -> MPMSolver:
    options = dict(max_particles=4000, grid_resolution=80, dt=1e-4, verbose=False)
    options.update(kwargs)
    return MPMSolver(**options)


def three_block_scene(solver: MPMSolver, seed: int = 0) -> None:
    rng = np.random.default_rng(seed)
    for obj in (
        ObjectConfig(center=(0.55, 0.45), material=Material.ELASTIC, color=0xED553B),
        ObjectConfig(center=(0.45, 0.65), material=Material.SNOW, color=0xF2B134),
        ObjectConfig(center=(0.55, 0.85), material=Material.SNOW, color=0x068587),
    ):
        add_object(solver, obj, rng)


@pytest.fixture
def small_scene_config() -> SceneConfig:
    return SceneConfig(
        scene_name="small",
        simulation=SimulationConfig(grid_resolution=32, time_step=1e-4, frame_dt=5e-4,
                                    total_frames=3, max_particles=400),
        objects=[
            ObjectConfig(center=(0.5, 0.4), material="elastic", color=0xED553B, particle_count=100),
            ObjectConfig(center=(0.5, 0.7), material="snow", color=0xF2B134, particle_count=100),
        ],
    )
