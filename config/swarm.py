"""Configuration for the 3D swarm (nearest-neighbor flocking) simulation."""

SWARM = {
    "num_birds": 500,
    "boundary": 300.0,            # Half-width of the cubic domain
    "avoidance_distance": 25.0,   # Attract/repel threshold to the nearest neighbor
    "max_velocity": 5.0,
    "max_acceleration": 10.0,
    "dt": 1.0,
    "neighborhood_radius": 50.0,  # Spatial grid cell size
    "collision_distance": 1.5,    # Host-side collision detection radius

    # Execution
    "mode": "scalar",             # scalar | grid | batched | parallel
    "rule": None,                 # None picks the default rule of the mode
    "seed": None,
}

HOST = {
    "ticks": 1000,
    "log_interval": 100,          # Print a progress line every N ticks
}

COLORS = {
    "bird": (1.0, 0.0, 0.0, 1.0),
}

SHAPE = {
    "cone_length": 10.2,
    "cone_radius": 1.5,
}

# =============================================================================
# PRESETS
# =============================================================================

PRESETS = {
    "simple": {
        "num_birds": 500,
        "mode": "scalar",
        "rule": "reynolds",
    },
    "fast": {
        "num_birds": 1000,
        "mode": "batched",
        "rule": "inverse_distance",
    },
}
