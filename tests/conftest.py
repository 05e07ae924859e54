"""Root-level pytest fixtures for the stackarith test suite.

Provides shared configuration fixtures and small datasets. Tests use
these fixtures instead of building raw config dicts.
"""

import numpy as np
import pytest

from stackarith.core.dataset import make_dataset
from stackarith.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Use this when tests don't care about specific config values and just
    need a valid InternalConfig to pass to constructors.
    """
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_two_threads(make_config):
    ...     config = make_config(num_threads=2)
    ...     assert config.evaluator.num_threads == 2
    """
    def _make(**user_overrides):
        if user_overrides:
            return resolve_config(param_config, UserConfig(**user_overrides), None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Dataset Fixtures
# =============================================================================

@pytest.fixture
def ramp_1d():
    """[1, 2, 3, 4, 5] as float32."""
    return make_dataset(np.arange(1, 6, dtype=np.float32))


@pytest.fixture
def image_2x3():
    """[[1, 2, 3], [4, 5, 6]] as int32 (2 rows, 3 columns)."""
    return make_dataset(np.array([[1, 2, 3], [4, 5, 6]], dtype=np.int32))


@pytest.fixture
def diagonal_binary():
    """Two diagonally touching cells plus one separate blob."""
    values = np.zeros((6, 6), dtype=np.uint8)
    values[0, 0] = 1
    values[1, 1] = 1
    values[4:6, 4:6] = 1
    return make_dataset(values)


@pytest.fixture
def speck_binary():
    """A 5x5 solid square plus one isolated foreground cell."""
    values = np.zeros((11, 11), dtype=np.uint8)
    values[2:7, 2:7] = 1
    values[9, 9] = 1
    return make_dataset(values)
