import math

import pytest

from forcelayout.config import settings as C
from forcelayout.config.simulation import SimulationConfig
from forcelayout.physics.errors import ConfigurationError, InvalidConfigError


def test_defaults():
    config = SimulationConfig()
    assert config.theta == 0.81
    assert config.velocity_decay == 0.4
    assert config.alpha_min == 0.001
    assert config.alpha_decay == pytest.approx(0.0228, abs=1e-4)
    assert (1.0 - config.alpha_decay) ** 300 == pytest.approx(config.alpha_min)
    assert config.alpha_target == 0.0
    assert config.collision_enabled is False
    assert config.link_strength is None
    assert math.isinf(config.distance_max)


@pytest.mark.parametrize(
    "changes",
    [
        {"velocity_decay": 0.0},
        {"velocity_decay": 1.0},
        {"alpha_decay": 0.0},
        {"alpha_decay": 1.5},
        {"alpha": 2.0},
        {"link_distance": -1.0},
        {"link_strength": 1.1},
        {"theta": 0.0},
        {"distance_min": 0.0},
        {"collision_iterations": 0},
        {"center_strength": -1.0},
        {"interaction_alpha_target": 0.0},
    ],
)
def test_invalid_values_rejected(changes):
    with pytest.raises(InvalidConfigError):
        SimulationConfig(**changes)


def test_configuration_errors_are_value_errors():
    assert issubclass(InvalidConfigError, ConfigurationError)
    assert issubclass(ConfigurationError, ValueError)


def test_from_mapping():
    config = SimulationConfig.from_mapping({"charge_strength": -100.0, "collision_enabled": True})
    assert config.charge_strength == -100.0
    assert config.collision_enabled is True
    assert config.theta == C.BARNES_HUT_THETA
    with pytest.raises(InvalidConfigError):
        SimulationConfig.from_mapping({"gravity": 9.8})
    with pytest.raises(InvalidConfigError):
        SimulationConfig.from_mapping({"velocity_decay": "fast"})


def test_replace_validates():
    config = SimulationConfig().replace(theta=0.5)
    assert config.theta == 0.5
    with pytest.raises(InvalidConfigError):
        config.replace(alpha_decay=1.0)
