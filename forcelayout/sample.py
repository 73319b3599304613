from __future__ import annotations

from typing import List, Tuple

from forcelayout.physics.graph import Link, Node

# (id, group, radius)
_NODES = [
    ("A", 1, 20.0),
    ("B", 1, 15.0),
    ("C", 2, 25.0),
    ("D", 2, 20.0),
    ("E", 3, 15.0),
    ("F", 3, 18.0),
    ("G", 4, 22.0),
    ("H", 4, 16.0),
]

_LINKS = [
    ("A", "B"),
    ("A", "C"),
    ("B", "D"),
    ("C", "D"),
    ("D", "E"),
    ("E", "F"),
    ("F", "G"),
    ("G", "H"),
    ("H", "A"),
]


def sample_graph(link_distance: float = 100.0, link_strength: float = 0.1, padding: float = 10.0) -> Tuple[List[Node], List[Link]]:
    """A small ring-with-chord network; radii include ``padding`` so labels do not touch."""
    nodes = [Node(id=i, group=g, radius=r + padding) for i, g, r in _NODES]
    links = [Link(s, t, target_distance=link_distance, strength=link_strength) for s, t in _LINKS]
    return nodes, links
