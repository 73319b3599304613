from __future__ import annotations

import logging
import math
import secrets
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from forcelayout.config.simulation import SimulationConfig
from forcelayout.physics.errors import InvalidConfigError, NodeNotPinnedError, UnknownNodeError
from forcelayout.physics.forces import CenteringForce, CollisionForce, Force, LinkForce, ManyBodyForce
from forcelayout.physics.graph import Link, Node, check_links, check_nodes, index_nodes, place
from forcelayout.spatial import quadtree

logger = logging.getLogger(__name__)

TickListener = Callable[[Sequence[Node]], None]


class Simulation:
    """Owns the nodes and links of one layout and advances it tick by tick.

    Nothing here schedules itself: the host calls :meth:`step` (typically once
    per frame) and reads node positions afterwards. All calls, including the
    interaction methods, must come from one thread at a time.
    """

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        links: Iterable[Link] = (),
        config: Optional[SimulationConfig] = None,
        seed: int | None = None,
    ) -> None:
        if seed is None:
            seed = secrets.randbits(32)
        self.seed = int(seed) & 0xFFFFFFFF
        self.rng = np.random.default_rng(self.seed)

        self.config = config if config is not None else SimulationConfig()
        self.alpha = self.config.alpha
        self.alpha_min = self.config.alpha_min
        self.alpha_decay = self.config.alpha_decay
        self.alpha_target = self.config.alpha_target
        self.velocity_decay = self.config.velocity_decay
        self.tick_count = 0

        node_list = check_nodes(nodes)
        ids = index_nodes(node_list)
        self._links = check_links(links, ids)
        self._nodes: List[Node] = node_list
        self._ids: Dict[str, int] = ids
        place(self._nodes)

        self._forces: Dict[str, Force] = {}
        self._tick_listeners: List[TickListener] = []
        self._end_listeners: List[TickListener] = []
        self._sync_alpha_target()

    # ------------------------------------------------------------------
    # Read access

    @property
    def nodes(self) -> Sequence[Node]:
        return tuple(self._nodes)

    @property
    def links(self) -> Tuple[Link, ...]:
        return self._links

    @property
    def converged(self) -> bool:
        return self.alpha < self.alpha_min

    def node(self, node_id: str) -> Node:
        try:
            return self._nodes[self._ids[node_id]]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def positions(self) -> np.ndarray:
        return np.array([(n.x, n.y) for n in self._nodes], dtype=np.float64).reshape(-1, 2)

    def find(self, x: float, y: float, radius: float | None = None) -> Optional[str]:
        """Id of the node nearest to (x, y), or None if none lies within ``radius``."""
        body = quadtree.build(self._nodes).find(x, y, radius)
        return None if body is None else self._nodes[body.index].id

    # ------------------------------------------------------------------
    # Forces and listeners

    def add_force(self, name: str, force: Force) -> Force:
        force.initialize(self._nodes, self._links, self.rng)
        self._forces[name] = force
        logger.debug("registered force %r (%s)", name, type(force).__name__)
        return force

    def remove_force(self, name: str) -> Optional[Force]:
        return self._forces.pop(name, None)

    def force(self, name: str) -> Optional[Force]:
        return self._forces.get(name)

    @property
    def force_names(self) -> List[str]:
        return list(self._forces)

    def on_tick(self, callback: TickListener) -> TickListener:
        self._tick_listeners.append(callback)
        return callback

    def on_end(self, callback: TickListener) -> TickListener:
        self._end_listeners.append(callback)
        return callback

    def _initialize_forces(self) -> None:
        for force in self._forces.values():
            force.initialize(self._nodes, self._links, self.rng)

    # ------------------------------------------------------------------
    # Stepping

    def step(self) -> bool:
        """Advance one tick. Returns False without touching anything once converged."""
        if self.converged:
            return False

        nodes = self._nodes
        last_good = [(n.x, n.y) for n in nodes]

        # Every force sees the same start-of-tick velocities; contributions are summed
        base = np.array([(n.vx, n.vy) for n in nodes], dtype=np.float64).reshape(-1, 2)
        acc = np.zeros_like(base)
        for force in self._forces.values():
            for n, (bx, by) in zip(nodes, base):
                n.vx, n.vy = float(bx), float(by)
            force.apply(nodes, self.alpha)
            acc += np.array([(n.vx, n.vy) for n in nodes], dtype=np.float64).reshape(-1, 2) - base
        for n, (vx, vy) in zip(nodes, base + acc):
            n.vx, n.vy = float(vx), float(vy)

        keep = 1.0 - self.velocity_decay
        for i, n in enumerate(nodes):
            if n.fx is None:
                n.vx *= keep
                n.x += n.vx
            else:
                n.x = n.fx
                n.vx = 0.0
            if n.fy is None:
                n.vy *= keep
                n.y += n.vy
            else:
                n.y = n.fy
                n.vy = 0.0
            if not (math.isfinite(n.x) and math.isfinite(n.y) and math.isfinite(n.vx) and math.isfinite(n.vy)):
                logger.warning("node %r left the finite range at tick %d; restoring last position", n.id, self.tick_count)
                n.x, n.y = last_good[i]
                if n.fx is not None:
                    n.x = n.fx
                if n.fy is not None:
                    n.y = n.fy
                n.vx = 0.0
                n.vy = 0.0

        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self.tick_count += 1

        for callback in self._tick_listeners:
            callback(self.nodes)
        if self.converged:
            logger.debug("converged after %d ticks (alpha=%.5f)", self.tick_count, self.alpha)
            for callback in self._end_listeners:
                callback(self.nodes)
        return True

    def tick(self, iterations: int = 1) -> int:
        done = 0
        for _ in range(iterations):
            if not self.step():
                break
            done += 1
        return done

    def run(self, max_ticks: int | None = None) -> int:
        """Step until converged (or ``max_ticks``); returns the number of ticks taken.

        Without ``max_ticks`` the cooling target must lie below ``alpha_min``,
        otherwise alpha never drops far enough to converge (e.g. while a node
        is pinned) and :class:`InvalidConfigError` is raised.
        """
        if max_ticks is None and self.alpha_target >= self.alpha_min:
            raise InvalidConfigError(
                f"alpha_target {self.alpha_target} >= alpha_min {self.alpha_min}: "
                "the simulation cannot converge, pass max_ticks"
            )
        done = 0
        while not self.converged and (max_ticks is None or done < max_ticks):
            self.step()
            done += 1
        return done

    def reheat(self, alpha: float = 1.0) -> None:
        if not 0.0 <= alpha <= 1.0:
            raise InvalidConfigError(f"alpha must be in [0, 1], got {alpha}")
        self.alpha = alpha

    # ------------------------------------------------------------------
    # Interaction

    def pin(self, node_id: str, x: float, y: float) -> None:
        node = self.node(node_id)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidConfigError(f"pin position for {node_id!r} must be finite")
        node.fx, node.fy = x, y
        node.x, node.y = x, y
        node.vx = node.vy = 0.0
        if self.converged:
            self.alpha = max(self.alpha, self.config.interaction_alpha)
        self._sync_alpha_target()

    def move(self, node_id: str, x: float, y: float) -> None:
        node = self.node(node_id)
        if not node.pinned:
            raise NodeNotPinnedError(node_id)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidConfigError(f"pin position for {node_id!r} must be finite")
        if node.fx is not None:
            node.fx = node.x = x
            node.vx = 0.0
        if node.fy is not None:
            node.fy = node.y = y
            node.vy = 0.0

    def unpin(self, node_id: str) -> None:
        node = self.node(node_id)
        node.fx = node.fy = None
        self._sync_alpha_target()

    def _sync_alpha_target(self) -> None:
        if any(n.pinned for n in self._nodes):
            self.alpha_target = max(self.config.alpha_target, self.config.interaction_alpha_target)
        else:
            self.alpha_target = self.config.alpha_target

    # ------------------------------------------------------------------
    # Mutation

    def add_node(self, node: Node) -> Node:
        check_nodes([node], existing=self._ids)
        place([node], offset=len(self._nodes))
        self._nodes.append(node)
        self._ids[node.id] = len(self._nodes) - 1
        self._initialize_forces()
        self._sync_alpha_target()
        return node

    def remove_node(self, node_id: str) -> Node:
        node = self.node(node_id)
        self._nodes = [n for n in self._nodes if n is not node]
        self._ids = index_nodes(self._nodes)
        self._links = tuple(l for l in self._links if node_id not in (l.source, l.target))
        self._initialize_forces()
        self._sync_alpha_target()
        return node

    def set_links(self, links: Iterable[Link]) -> None:
        self._links = check_links(links, self._ids)
        self._initialize_forces()


def create_simulation(
    nodes: Iterable[Node] = (),
    links: Iterable[Link] = (),
    config: SimulationConfig | None = None,
    seed: int | None = None,
    on_tick: TickListener | None = None,
) -> Simulation:
    """Build a simulation with the default forces for ``config``.

    Forces are registered as ``link``, ``charge`` (unless the charge strength
    is zero), ``collide`` (when collision is enabled) and ``center``.
    """
    config = config if config is not None else SimulationConfig()
    sim = Simulation(nodes, links, config, seed=seed)
    sim.add_force("link", LinkForce(config.link_distance, config.link_strength, config.link_iterations))
    if config.charge_strength != 0.0:
        sim.add_force(
            "charge",
            ManyBodyForce(config.charge_strength, config.theta, config.distance_min, config.distance_max),
        )
    if config.collision_enabled:
        sim.add_force("collide", CollisionForce(config.collision_strength, config.collision_iterations))
    sim.add_force("center", CenteringForce(config.center_x, config.center_y, config.center_strength))
    if on_tick is not None:
        sim.on_tick(on_tick)
    return sim
