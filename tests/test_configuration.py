import textwrap

import pytest

from mls_mpm import ConfigurationError, Material, default_scene_config, load_scene_config
from mls_mpm.configuration import (
    BoundaryConfig,
    MaterialConfig,
    ObjectConfig,
    RuntimeConfig,
    SceneConfig,
    SimulationConfig,
)


def _write(tmp_path, text, name="scene.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


def test_defaults_match_reference_scene():
    config = default_scene_config()
    assert config.simulation.grid_resolution == 80
    assert config.simulation.time_step == pytest.approx(1e-4)
    assert config.simulation.gravity == (0.0, -200.0)
    assert config.material.snow_singular_value_bounds == pytest.approx((0.975, 1.0075))
    assert [obj.material for obj in config.objects] == [Material.ELASTIC, Material.SNOW, Material.SNOW]
    assert sum(obj.particle_count for obj in config.objects) == 1500


def test_steps_per_frame_rounds_to_nearest_step():
    assert SimulationConfig(time_step=1e-4, frame_dt=2e-3).steps_per_frame == 20
    assert SimulationConfig(time_step=3e-4, frame_dt=1e-3).steps_per_frame == 3
    assert SimulationConfig(time_step=1e-3, frame_dt=1e-3).steps_per_frame == 1
    assert SimulationConfig(grid_resolution=64).dx == pytest.approx(1 / 64)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: SimulationConfig(grid_resolution=0),
        lambda: SimulationConfig(grid_resolution=12.5),
        lambda: SimulationConfig(time_step=0.0),
        lambda: SimulationConfig(time_step=1e-3, frame_dt=1e-4),
        lambda: SimulationConfig(gravity=(0.0,)),
        lambda: SimulationConfig(gravity=(0.0, float("nan"))),
        lambda: MaterialConfig(particle_mass=0.0),
        lambda: MaterialConfig(particle_volume=-1.0),
        lambda: MaterialConfig(poisson_ratio=0.5),
        lambda: MaterialConfig(plastic_jacobian_min=2.0, plastic_jacobian_max=1.0),
        lambda: BoundaryConfig(thickness=0.0),
        lambda: BoundaryConfig(thickness=0.5),
        lambda: RuntimeConfig(arch="tpu"),
        lambda: RuntimeConfig(precision="float16"),
        lambda: ObjectConfig(center=(0.5, 0.5), material="sand"),
        lambda: ObjectConfig(center=(0.05, 0.5), material="snow"),
        lambda: ObjectConfig(center=(0.5, 0.5), material="snow", color=0x1000000),
        lambda: ObjectConfig(center=(0.5, 0.5), material="snow", particle_count=0),
    ],
)
def test_invalid_values_are_rejected(factory):
    with pytest.raises(ConfigurationError):
        factory()


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        SimulationConfig(time_step=-1.0)


def test_scene_rejects_more_particles_than_capacity():
    with pytest.raises(ConfigurationError, match="max_particles"):
        SceneConfig(
            simulation=SimulationConfig(max_particles=100),
            objects=[ObjectConfig(center=(0.5, 0.5), material="liquid", particle_count=101)],
        )


def test_load_scene_config_from_yaml(tmp_path):
    path = _write(tmp_path, """
        runtime:
          arch: cpu
          precision: float64
          random_seed: 7
        simulation:
          grid_resolution: 64
          time_step: 2.0e-4
          frame_dt: 2.0e-3
          total_frames: 12
          max_particles: 1000
        material:
          hardening: 5.0
        boundary:
          thickness: 0.04
        objects:
          - center: [0.3, 0.4]
            material: plastic
            color: 0xF2B134
            particle_count: 250
          - center: [0.7, 0.4]
            material: liquid
            color: 0x66CCFF
            particle_count: 250
            velocity: [-1.0, 0.0]
    """)

    config = load_scene_config(path)

    assert config.scene_name == "scene"
    assert config.runtime.precision == "float64"
    assert config.runtime.random_seed == 7
    assert config.simulation.grid_resolution == 64
    assert config.simulation.steps_per_frame == 10
    assert config.material.hardening == 5.0
    assert config.material.youngs_modulus == 1e4
    assert config.boundary.thickness == 0.04
    assert [obj.material for obj in config.objects] == [Material.SNOW, Material.LIQUID]
    assert config.objects[0].color == 0xF2B134
    assert config.objects[1].velocity == (-1.0, 0.0)


def test_load_scene_config_rejects_unknown_keys(tmp_path):
    path = _write(tmp_path, """
        simulation:
          grid_resolution: 64
          substeps: 4
    """)
    with pytest.raises(ConfigurationError, match="substeps"):
        load_scene_config(path)


def test_load_scene_config_rejects_non_mapping(tmp_path):
    path = _write(tmp_path, "- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load_scene_config(path)


def test_empty_scene_warns(tmp_path, capsys):
    path = _write(tmp_path, "scene_name: empty\n", name="empty.yaml")
    config = load_scene_config(path)
    assert config.scene_name == "empty"
    assert config.objects == []
    assert "defines no objects" in capsys.readouterr().out


def test_scene_rejects_objects_outside_grid_interior():
    # valid inside the unit square, but the lower edge falls below half a cell
    obj = ObjectConfig(center=(0.2, 0.5), material="snow", half_size=0.08)
    with pytest.raises(ConfigurationError, match="grid interior"):
        SceneConfig(simulation=SimulationConfig(grid_resolution=4), objects=[obj])
    SceneConfig(simulation=SimulationConfig(grid_resolution=80), objects=[obj])
