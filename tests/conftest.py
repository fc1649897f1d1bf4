"""
Test configuration and fixtures for falcon-core.

This module provides pytest fixtures and configuration for testing the
ring arithmetic, the samplers, key generation and the signing engine.
Degree-1024 key material is generated once per session; most unit tests run
at small degree instead.
"""

import numpy as np
import pytest
from pathlib import Path

# Set random seed for reproducibility
np.random.seed(42)

# Add the repository root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from falcon_core.lattices.ntrugen import ntru_gen
from falcon_core.params import SEED_LEN
from falcon_core.samplers.prng import ChaCha20
from falcon_core.signing import SecretKey


@pytest.fixture(scope="session")
def test_seed():
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def seeded_rng():
    """Factory for deterministic byte sources keyed by a small integer."""
    def make(label: int = 0) -> ChaCha20:
        return ChaCha20(bytes([label % 256]) * SEED_LEN)
    return make


@pytest.fixture
def random_poly(test_seed):
    """Factory for random integer polynomials."""
    rng = np.random.default_rng(test_seed)

    def make(n: int, bound: int = 100):
        return [int(x) for x in rng.integers(-bound, bound + 1, size=n)]
    return make


@pytest.fixture(scope="session")
def small_ntru_key():
    """NTRU trapdoor (f, g, F, G) of degree 64."""
    return ntru_gen(64, ChaCha20(b"falcon-core small test key"))


@pytest.fixture(scope="session")
def secret_key_1024():
    """Degree-1024 secret key, generated once per session."""
    f, g, F, G = ntru_gen(1024, ChaCha20(b"falcon-core test key"))
    return SecretKey(f, g, F, G)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual functions/methods"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for module interactions"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds"
    )
    config.addinivalue_line(
        "markers", "statistical: Tests that verify statistical properties"
    )
    config.addinivalue_line(
        "markers", "numerical: Tests that verify numerical accuracy"
    )
    config.addinivalue_line(
        "markers", "edge_case: Tests for edge cases and error conditions"
    )
    config.addinivalue_line(
        "markers", "reproducibility: Tests for deterministic behavior"
    )


def pytest_runtest_setup(item):
    """Setup for each test item - ensure reproducible random state."""
    np.random.seed(42)


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names and paths."""
    for item in items:
        # Add unit marker to unit test files
        if "unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        # Add integration marker to integration test files
        if "integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        # Anything touching the degree-1024 key is slow
        if "secret_key_1024" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.slow)

        # Add statistical marker to statistical tests
        if any(keyword in item.name.lower() for keyword in ['statistical', 'distribution']):
            item.add_marker(pytest.mark.statistical)

        # Add numerical marker to numerical accuracy tests
        if any(keyword in item.name.lower() for keyword in ['accuracy', 'precision', 'roundtrip']):
            item.add_marker(pytest.mark.numerical)

        # Add edge_case marker to edge case tests
        if any(keyword in item.name.lower() for keyword in ['edge', 'malformed', 'degenerate']):
            item.add_marker(pytest.mark.edge_case)
