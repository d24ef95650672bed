"""doctest fixtures"""

from typing import Any

import numpy as np
import pytest

import centroidlink.config as config

# Set numpy print option to legacy 1.25 so native numpy types
# are not printed with dtype information.
if np.__version__[0] == "2":
    np.set_printoptions(legacy="1.25")  # type: ignore


@pytest.fixture(autouse=True, scope="function")
def reset_index_dtype() -> Any:
    yield
    config.set_index_dtype(None)


@pytest.fixture(autouse=True, scope="session")
def add_all(doctest_namespace: dict[str, Any]) -> None:
    doctest_namespace["np"] = np
