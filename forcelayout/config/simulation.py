from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from forcelayout.config import settings as C
from forcelayout.physics.errors import InvalidConfigError


@dataclass(frozen=True)
class SimulationConfig:
    """Tunable parameters of a simulation and its default forces.

    Every field is optional; defaults come from :mod:`forcelayout.config.settings`.
    ``velocity_decay`` is the fraction of velocity lost per tick (friction), so
    a node keeps ``1 - velocity_decay`` of its velocity between ticks.
    """

    link_distance: float = C.LINK_DISTANCE
    link_strength: Optional[float] = C.LINK_STRENGTH
    link_iterations: int = C.LINK_ITERATIONS
    charge_strength: float = C.CHARGE_STRENGTH
    theta: float = C.BARNES_HUT_THETA
    distance_min: float = C.DISTANCE_MIN
    distance_max: float = C.DISTANCE_MAX
    collision_enabled: bool = C.COLLISION_ENABLED
    collision_strength: float = C.COLLISION_STRENGTH
    collision_iterations: int = C.COLLISION_ITERATIONS
    center_x: float = C.CENTER_X
    center_y: float = C.CENTER_Y
    center_strength: float = C.CENTER_STRENGTH
    velocity_decay: float = C.VELOCITY_DECAY
    alpha: float = C.ALPHA
    alpha_min: float = C.ALPHA_MIN
    alpha_decay: float = C.ALPHA_DECAY
    alpha_target: float = C.ALPHA_TARGET
    interaction_alpha_target: float = C.INTERACTION_ALPHA_TARGET
    interaction_alpha: float = C.INTERACTION_ALPHA

    def __post_init__(self) -> None:
        if not 0.0 < self.velocity_decay < 1.0:
            raise InvalidConfigError(f"velocity_decay must be in (0, 1), got {self.velocity_decay}")
        if not 0.0 < self.alpha_decay < 1.0:
            raise InvalidConfigError(f"alpha_decay must be in (0, 1), got {self.alpha_decay}")
        for name in ("alpha", "alpha_min", "alpha_target", "interaction_alpha_target", "interaction_alpha"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise InvalidConfigError(f"{name} must be in [0, 1], got {value}")
        if self.interaction_alpha_target < self.alpha_min:
            raise InvalidConfigError("interaction_alpha_target must not be below alpha_min")
        if not (self.link_distance > 0.0 and math.isfinite(self.link_distance)):
            raise InvalidConfigError(f"link_distance must be positive, got {self.link_distance}")
        if self.link_strength is not None and not 0.0 <= self.link_strength <= 1.0:
            raise InvalidConfigError(f"link_strength must be in [0, 1], got {self.link_strength}")
        if self.theta <= 0.0:
            raise InvalidConfigError(f"theta must be positive, got {self.theta}")
        if not 0.0 < self.distance_min <= self.distance_max:
            raise InvalidConfigError("distance bounds must satisfy 0 < distance_min <= distance_max")
        if self.link_iterations < 1 or self.collision_iterations < 1:
            raise InvalidConfigError("iteration counts must be at least 1")
        if self.collision_strength < 0.0 or self.center_strength < 0.0:
            raise InvalidConfigError("collision and center strengths must be non-negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulationConfig":
        names = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - names)
        if unknown:
            raise InvalidConfigError(f"unknown config keys: {', '.join(unknown)}")
        try:
            return cls(**dict(data))
        except TypeError as exc:
            raise InvalidConfigError(str(exc)) from exc

    def replace(self, **changes: Any) -> "SimulationConfig":
        return dataclasses.replace(self, **changes)
