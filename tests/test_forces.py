import numpy as np
import pytest

from forcelayout.physics.errors import DanglingLinkError, InvalidConfigError
from forcelayout.physics.forces import CenteringForce, CollisionForce, Force, LinkForce, ManyBodyForce
from forcelayout.physics.graph import Link, Node


@pytest.fixture
def rng():
    return np.random.default_rng(0)


def test_force_base_requires_apply():
    with pytest.raises(NotImplementedError):
        Force().apply([], 1.0)


def test_link_pulls_long_link_together(rng):
    nodes = [Node("a", x=0.0, y=0.0), Node("b", x=100.0, y=0.0)]
    force = LinkForce()
    force.initialize(nodes, [Link("a", "b", target_distance=50.0, strength=1.0)], rng)
    force.apply(nodes, 1.0)
    assert nodes[0].vx == pytest.approx(25.0)
    assert nodes[1].vx == pytest.approx(-25.0)
    assert nodes[0].vy == 0.0 and nodes[1].vy == 0.0


def test_link_pushes_short_link_apart_scaled_by_alpha(rng):
    nodes = [Node("a", x=0.0, y=0.0), Node("b", x=0.0, y=25.0)]
    force = LinkForce()
    force.initialize(nodes, [Link("a", "b", target_distance=50.0, strength=1.0)], rng)
    force.apply(nodes, 0.5)
    # (25 - 50) / 25 * 0.5 * 25 split evenly
    assert nodes[0].vy == pytest.approx(-6.25)
    assert nodes[1].vy == pytest.approx(6.25)


def test_link_defaults_follow_degree(rng):
    nodes = [Node(i, x=0.0, y=0.0) for i in ("hub", "a", "b", "c")]
    links = [Link("hub", leaf) for leaf in ("a", "b", "c")]
    force = LinkForce(distance=40.0)
    force.initialize(nodes, links, rng)
    for s, t, distance, strength, bias in force._pairs:
        assert (s, distance) == (0, 40.0)
        assert strength == pytest.approx(1.0)
        assert bias == pytest.approx(0.75)


def test_link_config_strength_and_per_link_override(rng):
    nodes = [Node(i, x=0.0, y=0.0) for i in ("a", "b", "c")]
    links = [Link("a", "b"), Link("b", "c", strength=0.2, target_distance=10.0)]
    force = LinkForce(distance=30.0, strength=0.5)
    force.initialize(nodes, links, rng)
    assert [(p[2], p[3]) for p in force._pairs] == [(30.0, 0.5), (10.0, 0.2)]


def test_link_rejects_dangling_reference(rng):
    nodes = [Node("a", x=0.0, y=0.0)]
    with pytest.raises(DanglingLinkError):
        LinkForce().initialize(nodes, [Link("a", "zz")], rng)


def test_coincident_link_endpoints_are_jiggled(rng):
    nodes = [Node("a", x=1.0, y=1.0), Node("b", x=1.0, y=1.0)]
    force = LinkForce()
    force.initialize(nodes, [Link("a", "b", target_distance=10.0, strength=1.0)], rng)
    force.apply(nodes, 1.0)
    assert all(np.isfinite([n.vx, n.vy]).all() for n in nodes)
    assert (nodes[0].vx, nodes[0].vy) != (0.0, 0.0)


def test_parallel_links_pull_harder(rng):
    def pull(link_count):
        nodes = [Node("a", x=0.0, y=0.0), Node("b", x=100.0, y=0.0)]
        force = LinkForce()
        force.initialize(nodes, [Link("a", "b", target_distance=50.0, strength=0.25)] * link_count, rng)
        force.apply(nodes, 1.0)
        return nodes[0].vx

    assert pull(2) > pull(1) > 0.0


def test_link_rejects_bad_parameters():
    with pytest.raises(InvalidConfigError):
        LinkForce(distance=0.0)
    with pytest.raises(InvalidConfigError):
        LinkForce(strength=1.5)


def test_many_body_repels_symmetrically(rng):
    nodes = [Node("a", x=0.0, y=0.0), Node("b", x=10.0, y=0.0)]
    force = ManyBodyForce(strength=-30.0)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 1.0)
    assert nodes[0].vx == pytest.approx(-3.0)
    assert nodes[1].vx == pytest.approx(3.0)


def test_many_body_scales_with_alpha_and_can_attract(rng):
    nodes = [Node("a", x=0.0, y=0.0), Node("b", x=10.0, y=0.0)]
    force = ManyBodyForce(strength=30.0)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 0.5)
    assert nodes[0].vx == pytest.approx(1.5)
    assert nodes[1].vx == pytest.approx(-1.5)


def test_many_body_zero_strength_is_inert(rng):
    nodes = [Node("a", x=0.0, y=0.0), Node("b", x=10.0, y=0.0)]
    force = ManyBodyForce(strength=0.0)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 1.0)
    assert [n.vx for n in nodes] == [0.0, 0.0]


def test_collision_separates_equal_discs(rng):
    nodes = [Node("a", x=0.0, y=0.0, radius=5.0), Node("b", x=6.0, y=0.0, radius=5.0)]
    force = CollisionForce()
    force.initialize(nodes, [], rng)
    force.apply(nodes, 1.0)
    assert nodes[0].vx == pytest.approx(-2.0)
    assert nodes[1].vx == pytest.approx(2.0)
    predicted = (nodes[1].x + nodes[1].vx) - (nodes[0].x + nodes[0].vx)
    assert predicted == pytest.approx(10.0)


def test_collision_moves_larger_disc_less_and_ignores_alpha(rng):
    nodes = [Node("big", x=0.0, y=0.0, radius=10.0), Node("small", x=12.0, y=0.0, radius=5.0)]
    force = CollisionForce()
    force.initialize(nodes, [], rng)
    force.apply(nodes, 0.0)
    assert nodes[0].vx == pytest.approx(-0.6)
    assert nodes[1].vx == pytest.approx(2.4)


def test_collision_leaves_separate_discs_alone(rng):
    nodes = [Node("a", x=0.0, y=0.0, radius=5.0), Node("b", x=20.0, y=0.0, radius=5.0)]
    force = CollisionForce(iterations=3)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 1.0)
    assert [n.vx for n in nodes] == [0.0, 0.0]


def test_centering_shifts_every_velocity_equally(rng):
    nodes = [Node("a", x=10.0, y=10.0), Node("b", x=30.0, y=10.0)]
    force = CenteringForce(0.0, 0.0, 1.0)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 0.0)
    assert [(n.vx, n.vy) for n in nodes] == [(-20.0, -10.0), (-20.0, -10.0)]


def test_centering_strength_scales_shift(rng):
    nodes = [Node("a", x=4.0, y=0.0)]
    force = CenteringForce(2.0, 0.0, 0.5)
    force.initialize(nodes, [], rng)
    force.apply(nodes, 1.0)
    assert nodes[0].vx == pytest.approx(-1.0)
