from __future__ import annotations

import logging
import math
import os
import sys
import time

import pygame
import secrets

from forcelayout.config import settings as C
from forcelayout.config.simulation import SimulationConfig
from forcelayout.physics.engine import Simulation, create_simulation
from forcelayout.sample import sample_graph
from forcelayout.visualization.render import draw, fit_zoom, screen_to_world


def pick_node(sim: Simulation, x: float, y: float, slack: float) -> str | None:
    """Id of the node whose own disc (grown by ``slack``) contains (x, y)."""
    if not sim.nodes:
        return None
    node_id = sim.find(x, y, slack + max(n.radius for n in sim.nodes))
    if node_id is None:
        return None
    node = sim.node(node_id)
    if math.hypot(node.x - x, node.y - y) > node.radius + slack:
        return None
    return node_id


def new_simulation(collision: bool = True) -> Simulation:
    nodes, links = sample_graph()
    config = SimulationConfig(charge_strength=-200.0, collision_enabled=collision, collision_strength=0.7)
    return create_simulation(nodes, links, config, seed=secrets.randbits(32))


def run() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pygame.init()
    pygame.display.set_caption("Force-directed layout")
    screen = pygame.display.set_mode((C.WINDOW_WIDTH, C.WINDOW_HEIGHT))
    clock = pygame.time.Clock()

    try:
        font = pygame.font.SysFont("Menlo,Consolas,Monaco,monospace", 14)
    except (NotImplementedError, AttributeError):
        try:
            font = pygame.font.Font(None, 16)
        except Exception:
            font = None

    os.makedirs(C.SCREENSHOT_DIR, exist_ok=True)

    collision = True
    sim = new_simulation(collision)
    sim.run(max_ticks=50)
    center, zoom = fit_zoom(sim)

    paused = C.PAUSED_AT_START
    show_info = True
    dragged: str | None = None

    last_fps_stamp = time.time()
    fps = 0.0

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    paused = not paused
                elif event.key == pygame.K_r:
                    sim.reheat()
                elif event.key == pygame.K_c:
                    collision = not collision
                    sim = new_simulation(collision)
                    dragged = None
                elif event.key == pygame.K_i:
                    show_info = not show_info
                elif event.key == pygame.K_s:
                    path = os.path.join(C.SCREENSHOT_DIR, f"screenshot_{time.time():.0f}.png")
                    pygame.image.save(screen, path)
                    print(f"Saved {path}")
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                x, y = screen_to_world(event.pos[0], event.pos[1], center, zoom)
                dragged = pick_node(sim, x, y, C.PICK_RADIUS / zoom)
                if dragged is not None:
                    sim.pin(dragged, x, y)
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                if dragged is not None:
                    sim.unpin(dragged)
                    dragged = None
            elif event.type == pygame.MOUSEMOTION and dragged is not None:
                x, y = screen_to_world(event.pos[0], event.pos[1], center, zoom)
                sim.move(dragged, x, y)

        if not paused:
            sim.step()

        draw(sim, screen, font, center, zoom, show_info)
        pygame.display.flip()

        clock.tick(C.MAX_FPS)
        now = time.time()
        if now - last_fps_stamp > 0.25:
            fps = clock.get_fps()
            last_fps_stamp = now
        pygame.display.set_caption(f"Force-directed layout - {fps:.1f} FPS")

    pygame.quit()


if __name__ == "__main__":
    try:
        run()
    except KeyboardInterrupt:
        pygame.quit()
        sys.exit(0)
