from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from forcelayout.config import settings as C


@dataclass
class Body:
    x: float
    y: float
    mass: float
    index: int
    radius: float = 0.0


class Quad:
    __slots__ = ("cx", "cy", "half")

    def __init__(self, cx: float, cy: float, half: float) -> None:
        self.cx = cx
        self.cy = cy
        self.half = half

    def contains(self, x: float, y: float) -> bool:
        return (
            (self.cx - self.half) <= x <= (self.cx + self.half)
            and (self.cy - self.half) <= y <= (self.cy + self.half)
        )

    def subdivide(self) -> Tuple["Quad", "Quad", "Quad", "Quad"]:
        h2 = self.half * 0.5
        return (
            Quad(self.cx - h2, self.cy - h2, h2),
            Quad(self.cx + h2, self.cy - h2, h2),
            Quad(self.cx - h2, self.cy + h2, h2),
            Quad(self.cx + h2, self.cy + h2, h2),
        )

    def distance2(self, x: float, y: float) -> float:
        # Squared distance from (x, y) to the nearest point of the box
        dx = max(abs(x - self.cx) - self.half, 0.0)
        dy = max(abs(y - self.cy) - self.half, 0.0)
        return dx * dx + dy * dy


class Cell:
    __slots__ = (
        "quad",
        "depth",
        "bodies",
        "mass",
        "com_x",
        "com_y",
        "max_radius",
        "children",
    )

    def __init__(self, quad: Quad, depth: int = 0) -> None:
        self.quad = quad
        self.depth = depth
        self.bodies: List[Body] = []
        self.mass = 0.0
        self.com_x = 0.0
        self.com_y = 0.0
        self.max_radius = 0.0
        self.children: Optional[Tuple[Cell, Cell, Cell, Cell]] = None

    def is_external(self) -> bool:
        return self.children is None

    def _update_com(self, b: Body) -> None:
        self.max_radius = max(self.max_radius, b.radius)
        m = self.mass + b.mass
        if m <= 0.0:
            return
        self.com_x = (self.com_x * self.mass + b.x * b.mass) / m
        self.com_y = (self.com_y * self.mass + b.y * b.mass) / m
        self.mass = m

    def insert(self, b: Body, max_depth: int) -> None:
        if self.is_external():
            if not self.bodies or self.depth >= max_depth:
                self.bodies.append(b)
                self._update_com(b)
                return
            existing = self.bodies
            self.bodies = []
            self.children = tuple(Cell(q, self.depth + 1) for q in self.quad.subdivide())  # type: ignore[assignment]
            for e in existing:
                self._put_into_child(e, max_depth)
            self._put_into_child(b, max_depth)
            self._update_com(b)
            return

        self._update_com(b)
        self._put_into_child(b, max_depth)

    def _put_into_child(self, b: Body, max_depth: int) -> None:
        x, y = b.x, b.y
        sw, se, nw, ne = self.children  # type: ignore[misc]
        if sw.quad.contains(x, y):
            sw.insert(b, max_depth)
        elif se.quad.contains(x, y):
            se.insert(b, max_depth)
        elif nw.quad.contains(x, y):
            nw.insert(b, max_depth)
        else:
            ne.insert(b, max_depth)

    def calc_force(
        self,
        index: int,
        x: float,
        y: float,
        theta: float,
        charge_fn: Callable[[float], float],
        dmin2: float,
        dmax2: float,
        jiggle: Optional[Callable[[], float]],
    ) -> Tuple[float, float]:
        # Barnes–Hut criterion: use cell COM when (cell size / distance) < θ
        # Inverse-square field: f = q (p_body - p) / max(|r|^2, d_min^2)
        if self.mass == 0.0:
            return 0.0, 0.0

        if not self.is_external():
            dx = self.com_x - x
            dy = self.com_y - y
            dist2 = dx * dx + dy * dy
            size = self.quad.half * 2.0
            if size * size < theta * theta * dist2:
                if dist2 >= dmax2:
                    return 0.0, 0.0
                w = charge_fn(self.mass) / max(dist2, dmin2)
                return dx * w, dy * w

            ax, ay = 0.0, 0.0
            for child in self.children:  # type: ignore[union-attr]
                sx, sy = child.calc_force(index, x, y, theta, charge_fn, dmin2, dmax2, jiggle)
                ax += sx
                ay += sy
            return ax, ay

        ax, ay = 0.0, 0.0
        for b in self.bodies:
            if b.index == index:
                continue
            dx = b.x - x
            dy = b.y - y
            if dx == 0.0 and dy == 0.0:
                if jiggle is None:
                    continue
                dx = jiggle()
                dy = jiggle()
            dist2 = dx * dx + dy * dy
            if dist2 >= dmax2:
                continue
            w = charge_fn(b.mass) / max(dist2, dmin2)
            ax += dx * w
            ay += dy * w
        return ax, ay


class QuadTree:
    """Square region quadtree over a snapshot of node positions.

    Cells cache the centroid, summed mass and largest body radius of their
    subtree so the tree serves both Barnes–Hut accumulation and radius
    queries. Trees are built per tick and discarded afterwards.
    """

    def __init__(self, cx: float, cy: float, half: float, max_depth: int = C.QUADTREE_MAX_DEPTH) -> None:
        self.root = Cell(Quad(cx, cy, half))
        self.max_depth = max_depth
        self.size = 0

    def insert_all(self, bodies: Iterable[Body]) -> None:
        self.root = Cell(self.root.quad)
        self.size = 0
        for b in bodies:
            if self.root.quad.contains(b.x, b.y):
                self.root.insert(b, self.max_depth)
                self.size += 1

    def query(self, x: float, y: float, radius: float) -> List[Body]:
        """Bodies whose disc may intersect the disc of ``radius`` at (x, y)."""
        found: List[Body] = []
        if self.size == 0:
            return found
        stack = [self.root]
        while stack:
            cell = stack.pop()
            reach = radius + cell.max_radius
            if cell.quad.distance2(x, y) > reach * reach:
                continue
            if cell.is_external():
                for b in cell.bodies:
                    dx = b.x - x
                    dy = b.y - y
                    r = radius + b.radius
                    if dx * dx + dy * dy <= r * r:
                        found.append(b)
            else:
                stack.extend(cell.children)  # type: ignore[arg-type]
        return found

    def find(self, x: float, y: float, radius: Optional[float] = None) -> Optional[Body]:
        """Nearest body to (x, y), or None if nothing lies within ``radius``."""
        best: Optional[Body] = None
        best2 = math.inf if radius is None else radius * radius
        if self.size == 0:
            return None
        stack = [self.root]
        while stack:
            cell = stack.pop()
            if cell.quad.distance2(x, y) > best2:
                continue
            if cell.is_external():
                for b in cell.bodies:
                    d2 = (b.x - x) ** 2 + (b.y - y) ** 2
                    if d2 <= best2:
                        best, best2 = b, d2
            else:
                # Visit the child containing the point last so it is popped first
                children = sorted(cell.children, key=lambda c: -c.quad.distance2(x, y))  # type: ignore[arg-type]
                stack.extend(children)
        return best


def build(
    nodes: Sequence,
    weights: Optional[Sequence[float]] = None,
    max_depth: int = C.QUADTREE_MAX_DEPTH,
    predicted: bool = False,
) -> QuadTree:
    """Build a quadtree over ``nodes`` (anything with x, y, radius).

    With ``predicted`` the bodies sit at ``x + vx, y + vy``, the positions the
    nodes will reach after the current velocities are committed.
    """
    bodies: List[Body] = []
    for i, n in enumerate(nodes):
        x, y = n.x, n.y
        if predicted:
            x += n.vx
            y += n.vy
        mass = 1.0 if weights is None else float(weights[i])
        bodies.append(Body(x, y, mass, i, float(getattr(n, "radius", 0.0))))

    if not bodies:
        return QuadTree(0.0, 0.0, 1.0, max_depth)

    xs = [b.x for b in bodies]
    ys = [b.y for b in bodies]
    x0, x1 = min(xs), max(xs)
    y0, y1 = min(ys), max(ys)
    half = max(x1 - x0, y1 - y0) * 0.5
    # Pad so boundary points are contained and a single point still has extent
    half = max(half * (1.0 + 1e-9), 1.0)
    tree = QuadTree((x0 + x1) * 0.5, (y0 + y1) * 0.5, half, max_depth)
    tree.insert_all(bodies)
    return tree


def accumulate_force(
    tree: QuadTree,
    index: int,
    x: float,
    y: float,
    theta: float,
    charge_fn: Callable[[float], float],
    distance_min: float = 1.0,
    distance_max: float = math.inf,
    jiggle: Optional[Callable[[], float]] = None,
) -> Tuple[float, float]:
    """Sum the inverse-square field acting on body ``index`` at (x, y).

    ``charge_fn`` maps a (possibly aggregated) mass to a charge; a negative
    charge pushes the point away from the body. Cells with
    ``size / distance < theta`` are treated as one body at their centroid.
    Distances below ``distance_min`` are clamped to it.
    """
    if tree.size == 0:
        return 0.0, 0.0
    return tree.root.calc_force(
        index, x, y, theta, charge_fn, distance_min * distance_min, distance_max * distance_max, jiggle
    )
