import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from swarm.params import SwarmParams  # noqa: E402


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def params() -> SwarmParams:
    return SwarmParams(
        num_birds=50,
        boundary=300.0,
        avoidance_distance=25.0,
        max_velocity=5.0,
        max_acceleration=10.0,
        dt=1.0,
        neighborhood_radius=50.0,
        mode="scalar",
        seed=7,
    )
