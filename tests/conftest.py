from __future__ import annotations

import numpy as np
import pytest

import centroidlink.config as config


@pytest.fixture(scope="session")
def RNG():
    return np.random.default_rng(0)


@pytest.fixture
def four_points():
    """Two tight pairs far apart."""
    return np.array([[0.0, 0.0], [0.0, 1.0], [5.0, 5.0], [5.0, 6.0]])


@pytest.fixture
def four_points_linkage():
    return np.array(
        [
            [0.0, 1.0, 1.0, 2.0],
            [2.0, 3.0, 1.0, 2.0],
            [4.0, 5.0, np.sqrt(50.0), 4.0],
        ]
    )


@pytest.fixture
def inversion_points():
    """The centroid of the first pair is closer to the third point than the pair members are to each other."""
    return np.array([[0.0, 0.0], [1.0, 0.0], [0.5, 0.9]])


@pytest.fixture(autouse=True)
def reset_index_dtype():
    yield
    config.set_index_dtype(None)
