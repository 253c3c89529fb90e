"""
Pytest configuration and shared fixtures for epoch snapshot tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

# Extract factory functions
make_activity_rows = _common.make_activity_rows
make_ab_rows = _common.make_ab_rows
make_request = _common.make_request
make_database = _common.make_database
make_pipeline = _common.make_pipeline


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def db():
    """Provide a fresh in-memory database with tables created."""
    database = make_database()
    yield database
    database.close()


@pytest.fixture
def ab_rows():
    """Provide the two-user A/B activity rows."""
    return make_ab_rows()


@pytest.fixture
def ab_pipeline(db, ab_rows):
    """Provide a pipeline over the A/B rows with no fee reductions."""
    pipeline, _ = make_pipeline(ab_rows, db=db)
    return pipeline


@pytest.fixture
def snapshot_request():
    """Provide the default SnapshotRequest (epoch 1, 300 TON)."""
    return make_request()


@pytest.fixture
def published(ab_pipeline, snapshot_request):
    """Provide a published A/B snapshot result."""
    return ab_pipeline.generate(snapshot_request)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
