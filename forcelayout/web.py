from __future__ import annotations

import io
import logging
import os
import threading
import time
from typing import Optional

import pygame
import secrets
from flask import Flask, Response, jsonify, make_response, render_template_string, request
from PIL import Image

from forcelayout.config import settings as C
from forcelayout.config.simulation import SimulationConfig
from forcelayout.physics.engine import Simulation, create_simulation
from forcelayout.physics.errors import ConfigurationError, UnknownNodeError
from forcelayout.sample import sample_graph
from forcelayout.visualization.render import draw, fit_zoom

# Ensure SDL doesn't try to open a desktop window
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

logger = logging.getLogger(__name__)

app = Flask(__name__)

# One lock serializes every call into the simulation and the frame buffer
_lock = threading.Lock()
_sim: Optional[Simulation] = None
_latest_frame_jpeg: Optional[bytes] = None
_screen: Optional[pygame.Surface] = None
_view = ((0.0, 0.0), 1.0)
_running = True


def _surface_to_jpeg_bytes(surface: pygame.Surface, quality: int = 80) -> bytes:
    raw_str = pygame.image.tostring(surface, "RGB")
    image = Image.frombytes("RGB", (surface.get_width(), surface.get_height()), raw_str)
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()


def reset_simulation(sim: Optional[Simulation] = None) -> Simulation:
    """Replace the served simulation (a fresh sample graph when ``sim`` is None)."""
    global _sim, _view, _latest_frame_jpeg
    if sim is None:
        nodes, links = sample_graph()
        config = SimulationConfig(charge_strength=-200.0, collision_enabled=True, collision_strength=0.7)
        sim = create_simulation(nodes, links, config, seed=secrets.randbits(32))
        sim.run(max_ticks=50)
    with _lock:
        _sim = sim
        _view = fit_zoom(sim)
        _latest_frame_jpeg = None
    return sim


def _simulation() -> Simulation:
    if _sim is None:
        return reset_simulation()
    return _sim


def _render_locked() -> bytes:
    global _screen
    if _screen is None:
        pygame.init()
        _screen = pygame.Surface((C.WINDOW_WIDTH, C.WINDOW_HEIGHT))
    center, zoom = _view
    draw(_sim, _screen, None, center, zoom, False)  # type: ignore[arg-type]
    return _surface_to_jpeg_bytes(_screen, quality=80)


def _sim_loop() -> None:
    global _latest_frame_jpeg
    _simulation()
    frame_time = 1.0 / C.WEB_TARGET_FPS
    while _running:
        started = time.time()
        with _lock:
            _sim.step()  # type: ignore[union-attr]
            try:
                _latest_frame_jpeg = _render_locked()
            except (pygame.error, OSError, ValueError):
                logger.exception("frame encoding failed; skipping frame")
        time.sleep(max(0.0, frame_time - (time.time() - started)))


@app.route("/")
def index() -> str:
    return render_template_string(
        """
<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>Force layout</title>
    <style>
      body { background: #0b0e16; color: #e6ebf5; margin: 0; display: flex; justify-content: center; }
      canvas { margin-top: 12px; border-radius: 8px; background: #05070c; }
    </style>
  </head>
  <body>
    <canvas id="canvas" width="{{w}}" height="{{h}}"></canvas>
    <script>
      (function(){
        const ctx = document.getElementById('canvas').getContext('2d');
        let loading = false;
        function drawLoop() {
          if (!loading) {
            loading = true;
            const img = new Image();
            img.onload = function() { ctx.drawImage(img, 0, 0, {{w}}, {{h}}); loading = false; };
            img.onerror = function() { loading = false; };
            img.src = "/frame.jpg?t=" + Date.now();
          }
          requestAnimationFrame(drawLoop);
        }
        requestAnimationFrame(drawLoop);
      })();
    </script>
  </body>
</html>
        """,
        w=C.WINDOW_WIDTH,
        h=C.WINDOW_HEIGHT,
    )


@app.route("/frame.jpg")
def frame_jpg() -> Response:
    _simulation()
    with _lock:
        frame = _latest_frame_jpeg
        if frame is None:
            # No background loop: advance on demand
            _sim.step()  # type: ignore[union-attr]
            frame = _render_locked()
    resp = make_response(frame)
    resp.headers["Content-Type"] = "image/jpeg"
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    return resp


@app.route("/layout.json")
def layout_json() -> Response:
    sim = _simulation()
    with _lock:
        payload = {
            "tick": sim.tick_count,
            "alpha": sim.alpha,
            "converged": sim.converged,
            "nodes": [
                {"id": n.id, "x": n.x, "y": n.y, "radius": n.radius, "group": n.group, "pinned": n.pinned}
                for n in sim.nodes
            ],
            "links": [{"source": l.source, "target": l.target} for l in sim.links],
        }
    return jsonify(payload)


@app.route("/reheat", methods=["POST"])
def reheat() -> Response:
    sim = _simulation()
    body = request.get_json(silent=True) or {}
    try:
        with _lock:
            sim.reheat(float(body.get("alpha", 1.0)))
            alpha = sim.alpha
    except (ConfigurationError, TypeError, ValueError) as exc:
        return make_response(jsonify({"error": str(exc)}), 400)
    return jsonify({"alpha": alpha})


@app.route("/nodes/<node_id>/pin", methods=["POST", "DELETE"])
def pin(node_id: str) -> Response:
    sim = _simulation()
    try:
        with _lock:
            if request.method == "DELETE":
                sim.unpin(node_id)
            else:
                body = request.get_json(silent=True) or {}
                x, y = float(body["x"]), float(body["y"])
                if sim.node(node_id).pinned:
                    sim.move(node_id, x, y)
                else:
                    sim.pin(node_id, x, y)
            node = sim.node(node_id)
    except UnknownNodeError as exc:
        return make_response(jsonify({"error": str(exc)}), 404)
    except (ConfigurationError, KeyError, TypeError, ValueError) as exc:
        return make_response(jsonify({"error": str(exc)}), 400)
    return jsonify({"id": node.id, "x": node.x, "y": node.y, "pinned": node.pinned})


def _start_background_sim_once() -> None:
    # Start the simulation thread only once
    if not getattr(_start_background_sim_once, "_started", False):
        t = threading.Thread(target=_sim_loop, daemon=True)
        t.start()
        _start_background_sim_once._started = True  # type: ignore[attr-defined]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    _start_background_sim_once()
    app.run(host="0.0.0.0", port=5000, debug=False, threaded=True)
