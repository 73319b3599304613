import os

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

from forcelayout.config.simulation import SimulationConfig  # noqa: E402
from forcelayout.physics.graph import Link, Node  # noqa: E402


@pytest.fixture
def pair():
    nodes = [Node("A", radius=5.0), Node("B", radius=5.0)]
    links = [Link("A", "B", target_distance=50.0, strength=1.0)]
    return nodes, links


@pytest.fixture
def quiet_config():
    # Springs and centering only
    return SimulationConfig(charge_strength=0.0, collision_enabled=False)
