from __future__ import annotations

import math

# Cooling schedule
ALPHA = 1.0
ALPHA_MIN = 0.001
# Reaches ALPHA_MIN from 1.0 in ~300 ticks
ALPHA_DECAY = 1.0 - ALPHA_MIN ** (1.0 / 300.0)
ALPHA_TARGET = 0.0
VELOCITY_DECAY = 0.4

# Interaction
INTERACTION_ALPHA_TARGET = 0.3
INTERACTION_ALPHA = 0.5

# Link force
LINK_DISTANCE = 30.0
LINK_STRENGTH = None
LINK_ITERATIONS = 1

# Many-body force
CHARGE_STRENGTH = -30.0
BARNES_HUT_THETA = 0.81
DISTANCE_MIN = 1.0
DISTANCE_MAX = math.inf

# Collision force
COLLISION_ENABLED = False
COLLISION_STRENGTH = 1.0
COLLISION_ITERATIONS = 1

# Centering force
CENTER_X = 0.0
CENTER_Y = 0.0
CENTER_STRENGTH = 1.0

# Spatial index
QUADTREE_MAX_DEPTH = 32

# Initial placement of nodes added without a position
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))

# Demo host
WINDOW_WIDTH = 960
WINDOW_HEIGHT = 720
MAX_FPS = 60
WEB_TARGET_FPS = 30
PAUSED_AT_START = False
SCREENSHOT_DIR = "screenshots"
BACKGROUND_COLOR = (11, 14, 22)
LINK_COLOR = (110, 120, 140)
PINNED_COLOR = (255, 255, 255)
TEXT_COLOR = (230, 235, 245)
LABEL_COLOR = (10, 12, 18)
GROUP_COLORS = (
    (31, 119, 180),
    (255, 127, 14),
    (44, 160, 44),
    (214, 39, 40),
    (148, 103, 189),
    (140, 86, 75),
    (227, 119, 194),
    (127, 127, 127),
    (188, 189, 34),
    (23, 190, 207),
)
MIN_NODE_DRAW_SIZE = 3
PICK_RADIUS = 12.0
