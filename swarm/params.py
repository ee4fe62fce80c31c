"""Immutable simulation parameters, built from config/swarm.py."""

import math
from dataclasses import dataclass, fields, replace
from typing import Optional

from config import swarm as config


MODES = ("scalar", "grid", "batched", "parallel")
RULES = ("reynolds", "inverse_distance")

# Rule used when a mode runs without an explicit rule
DEFAULT_RULES = {
    "scalar": "reynolds",
    "grid": "reynolds",
    "batched": "inverse_distance",
    "parallel": "inverse_distance",
}


@dataclass(frozen=True)
class SwarmParams:
    """
    Read-only parameters for one simulation run.

    Validated once at construction; the per-tick code trusts them.
    """
    num_birds: int = config.SWARM["num_birds"]
    boundary: float = config.SWARM["boundary"]
    avoidance_distance: float = config.SWARM["avoidance_distance"]
    max_velocity: float = config.SWARM["max_velocity"]
    max_acceleration: float = config.SWARM["max_acceleration"]
    dt: float = config.SWARM["dt"]
    neighborhood_radius: float = config.SWARM["neighborhood_radius"]
    collision_distance: float = config.SWARM["collision_distance"]
    mode: str = config.SWARM["mode"]
    rule: Optional[str] = config.SWARM["rule"]
    seed: Optional[int] = config.SWARM["seed"]

    def __post_init__(self):
        if isinstance(self.num_birds, bool) or not isinstance(self.num_birds, int) or self.num_birds < 0:
            raise ValueError(f"num_birds must be a non-negative integer, got {self.num_birds!r}")

        for name in ("boundary", "avoidance_distance", "max_velocity", "max_acceleration",
                     "dt", "neighborhood_radius", "collision_distance"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be finite and non-negative, got {value!r}")

        # The periodic wrap takes positions modulo the boundary
        if self.boundary == 0:
            raise ValueError("boundary must be positive")
        if self.neighborhood_radius == 0:
            raise ValueError("neighborhood_radius must be positive")

        if self.mode not in MODES:
            raise ValueError(f"Unknown mode {self.mode!r}, expected one of {', '.join(MODES)}")
        if self.rule is not None and self.rule not in RULES:
            raise ValueError(f"Unknown rule {self.rule!r}, expected one of {', '.join(RULES)}")

    @property
    def force_rule(self) -> str:
        """The rule this run uses: the explicit one, or the mode's default."""
        return self.rule if self.rule is not None else DEFAULT_RULES[self.mode]

    @classmethod
    def from_config(cls, preset: Optional[str] = None, **overrides) -> "SwarmParams":
        """
        Build parameters from config.SWARM, an optional preset and overrides.

        Overrides whose value is None are ignored so argparse namespaces can
        be passed through directly.
        """
        values = dict(config.SWARM)
        if preset is not None:
            if preset not in config.PRESETS:
                raise ValueError(f"Unknown preset {preset!r}, expected one of {', '.join(config.PRESETS)}")
            values.update(config.PRESETS[preset])

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise ValueError(f"Unknown parameter {key!r}")
            if value is not None:
                values[key] = value

        return cls(**{k: v for k, v in values.items() if k in known})

    def with_overrides(self, **overrides) -> "SwarmParams":
        return replace(self, **overrides)
