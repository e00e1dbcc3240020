"""
Shared pytest fixtures for the Mapper tests.

Points the JSON logger at a temp directory and pins the Config singleton
to schema defaults, so a stray mapper.json in the working directory never
changes test behaviour.
"""

import os
import sys
import tempfile
from pathlib import Path

# Ensure project root is on sys.path so imports work from tests/
sys.path.insert(0, str(Path(__file__).parent.parent))

# Route log files away from the repository BEFORE anything creates a logger.
os.environ.setdefault("MAPPER_LOG_DIR", os.path.join(tempfile.gettempdir(), "mapper_test_logs"))

import numpy as np
import pytest

from mapper_core.config import config


@pytest.fixture(autouse=True)
def schema_defaults():
    """Every test sees an empty mapper.json (schema defaults only)."""
    saved = config._data
    config._data = {}
    yield config
    config._data = saved


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def noisy_circle(rng):
    """1000 points near the unit circle (radial noise, sd 0.02)."""
    angles = rng.uniform(0.0, 2.0 * np.pi, 1000)
    radii = 1.0 + rng.normal(0.0, 0.02, 1000)
    return np.column_stack([radii * np.cos(angles), radii * np.sin(angles)])


@pytest.fixture
def two_blobs(rng):
    """Two tight, well separated 2-D blobs of 30 points each."""
    left = rng.normal(0.0, 0.05, (30, 2))
    right = rng.normal(0.0, 0.05, (30, 2)) + np.array([5.0, 0.0])
    return np.vstack([left, right])
