from __future__ import annotations

from typing import Tuple

import numpy as np
import pygame

from forcelayout.config import settings as C
from forcelayout.physics.engine import Simulation


def world_to_screen(x: float, y: float, center: Tuple[float, float], zoom: float) -> Tuple[int, int]:
    cx, cy = center
    sx = (x - cx) * zoom + C.WINDOW_WIDTH * 0.5
    sy = (y - cy) * zoom + C.WINDOW_HEIGHT * 0.5
    return int(sx), int(sy)


def screen_to_world(sx: float, sy: float, center: Tuple[float, float], zoom: float) -> Tuple[float, float]:
    cx, cy = center
    return (sx - C.WINDOW_WIDTH * 0.5) / zoom + cx, (sy - C.WINDOW_HEIGHT * 0.5) / zoom + cy


def group_color(group: int) -> Tuple[int, int, int]:
    return C.GROUP_COLORS[group % len(C.GROUP_COLORS)]


def fit_zoom(sim: Simulation, margin: float = 0.9) -> Tuple[Tuple[float, float], float]:
    """Center and zoom that fit every node (with its radius) in the window."""
    pos = sim.positions()
    if pos.size == 0:
        return (0.0, 0.0), 1.0
    radii = np.array([n.radius for n in sim.nodes], dtype=np.float64)
    lo = (pos - radii[:, None]).min(axis=0)
    hi = (pos + radii[:, None]).max(axis=0)
    span = np.maximum(hi - lo, 1.0)
    zoom = margin * min(C.WINDOW_WIDTH / span[0], C.WINDOW_HEIGHT / span[1])
    mid = (lo + hi) * 0.5
    return (float(mid[0]), float(mid[1])), float(zoom)


def draw(sim: Simulation, screen: pygame.Surface, font: pygame.font.Font | None, center: Tuple[float, float], zoom: float, show_info: bool) -> None:
    screen.fill(C.BACKGROUND_COLOR)
    for link in sim.links:
        s = sim.node(link.source)
        t = sim.node(link.target)
        a = world_to_screen(s.x, s.y, center, zoom)
        b = world_to_screen(t.x, t.y, center, zoom)
        pygame.draw.line(screen, C.LINK_COLOR, a, b, 1)
    for node in sim.nodes:
        x, y = world_to_screen(node.x, node.y, center, zoom)
        size = max(C.MIN_NODE_DRAW_SIZE, int(node.radius * zoom))
        pygame.draw.circle(screen, group_color(node.group), (x, y), size)
        if node.pinned:
            pygame.draw.circle(screen, C.PINNED_COLOR, (x, y), size, 2)
        if font is not None:
            label = font.render(node.id, True, C.LABEL_COLOR)
            screen.blit(label, label.get_rect(center=(x, y)))
    if show_info and font is not None:
        state = "converged" if sim.converged else "running"
        info_lines = [
            f"tick={sim.tick_count}  alpha={sim.alpha:.4f}  target={sim.alpha_target:.2f}  ({state})",
            f"nodes={len(sim.nodes)}  links={len(sim.links)}  forces={','.join(sim.force_names)}",
            "Controls: Space=Pause, R=Reheat, C=Collision, I=Info, S=Screenshot, Drag=Pin node",
        ]
        y0 = 8
        for line in info_lines:
            text_surf = font.render(line, True, C.TEXT_COLOR)
            screen.blit(text_surf, (8, y0))
            y0 += 20
