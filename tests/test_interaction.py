import pytest

from forcelayout.config.simulation import SimulationConfig
from forcelayout.physics.engine import create_simulation
from forcelayout.physics.errors import InvalidConfigError, NodeNotPinnedError, UnknownNodeError
from forcelayout.physics.graph import Node
from forcelayout.sample import sample_graph


@pytest.fixture
def sim():
    nodes, links = sample_graph()
    return create_simulation(nodes, links, SimulationConfig(charge_strength=-200.0, collision_enabled=True), seed=11)


def test_pinned_node_stays_exactly_put(sim):
    sim.pin("A", 100.0, 100.0)
    a = sim.node("A")
    assert (a.x, a.y) == (100.0, 100.0)
    for _ in range(500):
        sim.step()
        assert a.x == 100 and a.y == 100
        assert a.vx == 0.0 and a.vy == 0.0


def test_pin_keeps_the_simulation_warm(sim):
    sim.pin("B", 0.0, 0.0)
    assert sim.alpha_target == pytest.approx(0.3)
    sim.tick(2000)
    assert not sim.converged
    assert sim.alpha == pytest.approx(0.3, abs=1e-3)


def test_pin_after_convergence_reheats(sim):
    sim.run()
    assert sim.converged
    sim.pin("C", 10.0, -10.0)
    assert sim.alpha >= 0.5
    assert sim.step() is True


def test_move_follows_the_drag(sim):
    sim.pin("D", 0.0, 0.0)
    for x in range(0, 50, 5):
        sim.move("D", float(x), 2.0 * x)
        sim.step()
        d = sim.node("D")
        assert (d.x, d.y) == (float(x), 2.0 * x)


def test_move_requires_pin(sim):
    with pytest.raises(NodeNotPinnedError):
        sim.move("E", 1.0, 1.0)


def test_unpin_releases_node_and_cools_once_all_released(sim):
    sim.pin("A", 50.0, 50.0)
    sim.pin("B", -50.0, -50.0)
    sim.tick(3)
    sim.unpin("A")
    a = sim.node("A")
    assert a.fx is None and a.fy is None
    assert (a.x, a.y) == (50.0, 50.0)
    assert sim.alpha_target == pytest.approx(0.3)
    sim.unpin("B")
    assert sim.alpha_target == 0.0
    sim.run()
    assert sim.converged
    assert (a.x, a.y) != (50.0, 50.0)


def test_unknown_node_operations_raise(sim):
    with pytest.raises(UnknownNodeError):
        sim.pin("nobody", 0.0, 0.0)
    with pytest.raises(KeyError):
        sim.unpin("nobody")


def test_pin_rejects_non_finite_position(sim):
    with pytest.raises(InvalidConfigError):
        sim.pin("A", float("nan"), 0.0)
    assert not sim.node("A").pinned


def test_nodes_created_pinned_start_at_their_pin():
    sim = create_simulation([Node("p", fx=7.0, fy=8.0), Node("q")], seed=0)
    p = sim.node("p")
    assert (p.x, p.y) == (7.0, 8.0)
    assert sim.alpha_target == pytest.approx(0.3)
    sim.tick(10)
    assert (p.x, p.y) == (7.0, 8.0)


def test_find_hit_tests_nodes(sim):
    c = sim.node("C")
    assert sim.find(c.x + 1.0, c.y - 1.0, radius=5.0) == "C"
    assert sim.find(c.x + 1e6, c.y, radius=5.0) is None


def test_run_refuses_to_spin_forever_while_pinned(sim):
    sim.pin("A", 0.0, 0.0)
    with pytest.raises(InvalidConfigError):
        sim.run()
    assert sim.run(max_ticks=20) == 20
    assert (sim.node("A").x, sim.node("A").y) == (0.0, 0.0)
    sim.unpin("A")
    assert sim.run() > 0
    assert sim.converged


def test_run_refuses_warm_configured_target():
    sim = create_simulation([Node("a")], config=SimulationConfig(alpha_target=0.01), seed=0)
    with pytest.raises(InvalidConfigError):
        sim.run()


def test_move_lands_even_when_cooled(sim):
    sim.pin("A", 0.0, 0.0)
    sim.reheat(0.0)
    assert sim.converged
    sim.move("A", 30.0, 40.0)
    a = sim.node("A")
    assert (a.x, a.y) == (30.0, 40.0)
    assert sim.step() is False
    assert (a.x, a.y) == (30.0, 40.0)
