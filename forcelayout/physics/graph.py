from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from forcelayout.config import settings as C
from forcelayout.physics.errors import (
    DanglingLinkError,
    DuplicateNodeError,
    InvalidConfigError,
    InvalidLinkError,
)


@dataclass(eq=False)
class Node:
    id: str
    x: Optional[float] = None
    y: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0
    radius: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None
    group: int = 0

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    target_distance: Optional[float] = None
    strength: Optional[float] = None


def _finite(value: Optional[float]) -> bool:
    return value is None or math.isfinite(value)


def check_node(node: Node) -> None:
    if not isinstance(node.id, str) or not node.id:
        raise InvalidConfigError(f"node id must be a non-empty string, got {node.id!r}")
    if not (math.isfinite(node.radius) and node.radius >= 0.0):
        raise InvalidConfigError(f"node {node.id!r} radius must be a finite value >= 0, got {node.radius}")
    for name in ("x", "y", "fx", "fy"):
        if not _finite(getattr(node, name)):
            raise InvalidConfigError(f"node {node.id!r} {name} must be finite")
    if not (math.isfinite(node.vx) and math.isfinite(node.vy)):
        raise InvalidConfigError(f"node {node.id!r} velocity must be finite")


def check_nodes(nodes: Iterable[Node], existing: Iterable[str] = ()) -> List[Node]:
    seen = set(existing)
    checked: List[Node] = []
    for node in nodes:
        check_node(node)
        if node.id in seen:
            raise DuplicateNodeError(node.id)
        seen.add(node.id)
        checked.append(node)
    return checked


def check_link(link: Link, ids: Mapping[str, int]) -> None:
    for end in (link.source, link.target):
        if end not in ids:
            raise DanglingLinkError(link.source, link.target, end)
    d = link.target_distance
    if d is not None and not (d > 0.0 and math.isfinite(d)):
        raise InvalidLinkError(f"link {link.source!r} -> {link.target!r} target_distance must be > 0, got {d}")
    s = link.strength
    if s is not None and not 0.0 <= s <= 1.0:
        raise InvalidLinkError(f"link {link.source!r} -> {link.target!r} strength must be in [0, 1], got {s}")


def check_links(links: Iterable[Link], ids: Mapping[str, int]) -> Tuple[Link, ...]:
    checked = tuple(links)
    for link in checked:
        check_link(link, ids)
    return checked


def index_nodes(nodes: Sequence[Node]) -> Dict[str, int]:
    return {n.id: i for i, n in enumerate(nodes)}


def phyllotaxis(start: int, count: int) -> np.ndarray:
    """Positions for nodes ``start .. start + count`` on a sunflower spiral.

    Successive indices land at golden-angle steps with radius growing as
    ``sqrt(i)``, so newly added nodes never coincide.
    """
    i = np.arange(start, start + count, dtype=np.float64)
    r = C.INITIAL_RADIUS * np.sqrt(0.5 + i)
    a = i * C.INITIAL_ANGLE
    return np.stack([r * np.cos(a), r * np.sin(a)], axis=1)


def place(nodes: Sequence[Node], offset: int = 0) -> None:
    """Give nodes without a position a spot on the spiral; pinned nodes start at their pin."""
    pts = phyllotaxis(offset, len(nodes))
    for k, node in enumerate(nodes):
        if node.fx is not None:
            node.x = node.fx
        if node.fy is not None:
            node.y = node.fy
        if node.x is None or node.y is None:
            px, py = float(pts[k, 0]), float(pts[k, 1])
            node.x = px if node.x is None else node.x
            node.y = py if node.y is None else node.y
