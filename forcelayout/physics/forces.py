from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Sequence

import numpy as np

from forcelayout.config import settings as C
from forcelayout.physics.errors import DanglingLinkError, InvalidConfigError
from forcelayout.physics.graph import Link, Node, index_nodes
from forcelayout.spatial import quadtree

logger = logging.getLogger(__name__)

JIGGLE_SCALE = 1e-6


def make_jiggle(rng: np.random.Generator) -> Callable[[], float]:
    # Tiny random offset used to separate exactly coincident points
    def jiggle() -> float:
        return (float(rng.random()) - 0.5) * JIGGLE_SCALE

    return jiggle


class Force:
    """A pluggable force.

    ``initialize`` is called whenever the simulation's nodes or links change,
    ``apply`` once per tick. Forces only add into ``vx``/``vy``; positions are
    committed by the simulation after every force has run.
    """

    name = "force"

    def __init__(self) -> None:
        self._jiggle: Callable[[], float] = make_jiggle(np.random.default_rng(0))

    def initialize(self, nodes: Sequence[Node], links: Sequence[Link], rng: np.random.Generator) -> None:
        self._jiggle = make_jiggle(rng)

    def apply(self, nodes: Sequence[Node], alpha: float) -> None:
        raise NotImplementedError


class LinkForce(Force):
    """Springs pulling linked nodes toward each link's target distance.

    Each correction is split between the endpoints by degree, so a hub moves
    less than the leaves attached to it. Parallel links superpose.
    """

    name = "link"

    def __init__(
        self,
        distance: float = C.LINK_DISTANCE,
        strength: Optional[float] = C.LINK_STRENGTH,
        iterations: int = C.LINK_ITERATIONS,
    ) -> None:
        super().__init__()
        if not distance > 0.0:
            raise InvalidConfigError(f"link distance must be positive, got {distance}")
        if strength is not None and not 0.0 <= strength <= 1.0:
            raise InvalidConfigError(f"link strength must be in [0, 1], got {strength}")
        if iterations < 1:
            raise InvalidConfigError("link iterations must be at least 1")
        self.distance = distance
        self.strength = strength
        self.iterations = iterations
        self._pairs: List[tuple] = []

    def initialize(self, nodes: Sequence[Node], links: Sequence[Link], rng: np.random.Generator) -> None:
        super().initialize(nodes, links, rng)
        ids = index_nodes(nodes)
        count = [0] * len(nodes)
        resolved = []
        for link in links:
            for end in (link.source, link.target):
                if end not in ids:
                    raise DanglingLinkError(link.source, link.target, end)
            s, t = ids[link.source], ids[link.target]
            count[s] += 1
            count[t] += 1
            resolved.append((s, t, link))

        pairs = []
        for s, t, link in resolved:
            bias = count[s] / (count[s] + count[t])
            if link.strength is not None:
                strength = link.strength
            elif self.strength is not None:
                strength = self.strength
            else:
                strength = 1.0 / min(count[s], count[t])
            distance = link.target_distance if link.target_distance is not None else self.distance
            pairs.append((s, t, distance, strength, bias))
        self._pairs = pairs
        logger.debug("link force initialized with %d links", len(pairs))

    def apply(self, nodes: Sequence[Node], alpha: float) -> None:
        for _ in range(self.iterations):
            for s, t, distance, strength, bias in self._pairs:
                source = nodes[s]
                target = nodes[t]
                dx = target.x + target.vx - source.x - source.vx
                dy = target.y + target.vy - source.y - source.vy
                if dx == 0.0 and dy == 0.0:
                    dx = self._jiggle()
                    dy = self._jiggle()
                l = math.hypot(dx, dy)
                # Displacement ∝ (d - d0) · strength · α along the link
                k = (l - distance) / l * alpha * strength
                dx *= k
                dy *= k
                target.vx -= dx * bias
                target.vy -= dy * bias
                source.vx += dx * (1.0 - bias)
                source.vy += dy * (1.0 - bias)


class ManyBodyForce(Force):
    """Pairwise inverse-square charge, Barnes–Hut approximated.

    A negative ``strength`` repels. The quadtree is rebuilt on every apply.
    """

    name = "charge"

    def __init__(
        self,
        strength: float = C.CHARGE_STRENGTH,
        theta: float = C.BARNES_HUT_THETA,
        distance_min: float = C.DISTANCE_MIN,
        distance_max: float = C.DISTANCE_MAX,
    ) -> None:
        super().__init__()
        if theta <= 0.0:
            raise InvalidConfigError(f"theta must be positive, got {theta}")
        if not 0.0 < distance_min <= distance_max:
            raise InvalidConfigError("distance bounds must satisfy 0 < distance_min <= distance_max")
        self.strength = strength
        self.theta = theta
        self.distance_min = distance_min
        self.distance_max = distance_max

    def apply(self, nodes: Sequence[Node], alpha: float) -> None:
        if not nodes or self.strength == 0.0:
            return
        tree = quadtree.build(nodes)
        k = self.strength * alpha

        def charge(mass: float) -> float:
            return k * mass

        for i, node in enumerate(nodes):
            fx, fy = quadtree.accumulate_force(
                tree,
                i,
                node.x,
                node.y,
                self.theta,
                charge,
                self.distance_min,
                self.distance_max,
                self._jiggle,
            )
            node.vx += fx
            node.vy += fy


class CollisionForce(Force):
    """Pushes apart nodes whose discs overlap.

    Uses positions predicted from the current velocities. Each overlapping
    pair is separated in proportion to the overlap, split so the node with
    the larger radius moves less.
    """

    name = "collide"

    def __init__(self, strength: float = C.COLLISION_STRENGTH, iterations: int = C.COLLISION_ITERATIONS) -> None:
        super().__init__()
        if not 0.0 <= strength <= 1.0:
            raise InvalidConfigError(f"collision strength must be in [0, 1], got {strength}")
        if iterations < 1:
            raise InvalidConfigError("collision iterations must be at least 1")
        self.strength = strength
        self.iterations = iterations

    def apply(self, nodes: Sequence[Node], alpha: float) -> None:
        if len(nodes) < 2:
            return
        for _ in range(self.iterations):
            tree = quadtree.build(nodes, predicted=True)
            for i, node in enumerate(nodes):
                ri = node.radius
                xi = node.x + node.vx
                yi = node.y + node.vy
                for body in tree.query(xi, yi, ri):
                    # Each pair once
                    if body.index <= i:
                        continue
                    other = nodes[body.index]
                    rj = other.radius
                    r = ri + rj
                    dx = xi - other.x - other.vx
                    dy = yi - other.y - other.vy
                    l2 = dx * dx + dy * dy
                    if l2 >= r * r:
                        continue
                    if dx == 0.0 and dy == 0.0:
                        dx = self._jiggle()
                        dy = self._jiggle()
                        l2 = dx * dx + dy * dy
                    l = math.sqrt(l2)
                    k = (r - l) / l * self.strength
                    dx *= k
                    dy *= k
                    ri2 = ri * ri
                    rj2 = rj * rj
                    share = rj2 / (ri2 + rj2) if ri2 + rj2 > 0.0 else 0.5
                    node.vx += dx * share
                    node.vy += dy * share
                    other.vx -= dx * (1.0 - share)
                    other.vy -= dy * (1.0 - share)


class CenteringForce(Force):
    """Translates the whole layout so its centroid moves toward (x, y)."""

    name = "center"

    def __init__(self, x: float = C.CENTER_X, y: float = C.CENTER_Y, strength: float = C.CENTER_STRENGTH) -> None:
        super().__init__()
        if strength < 0.0:
            raise InvalidConfigError(f"center strength must be non-negative, got {strength}")
        self.x = x
        self.y = y
        self.strength = strength

    def apply(self, nodes: Sequence[Node], alpha: float) -> None:
        if not nodes:
            return
        pos = np.array([(n.x, n.y) for n in nodes], dtype=np.float64)
        cx, cy = pos.mean(axis=0)
        sx = (float(cx) - self.x) * self.strength
        sy = (float(cy) - self.y) * self.strength
        for node in nodes:
            node.vx -= sx
            node.vy -= sy
