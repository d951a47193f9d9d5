import pytest
import random
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.queue import QueueEngine
from hypothesis import settings
from tests.helpers.tracks import make_tracks

# Register Hypothesis profiles for property-based testing
settings.register_profile("fast", max_examples=50, deadline=None)
settings.register_profile("thorough", max_examples=1000, deadline=None)
settings.load_profile("fast")  # Default to fast profile


def pytest_collection_modifyitems(items):
    """Automatically order tests: unit tests first, then property tests.

    Individual tests marked with @pytest.mark.order("last") will run at the very end.
    """
    for item in items:
        # Skip if item already has explicit order marker
        if hasattr(item, 'get_closest_marker') and item.get_closest_marker('order'):
            continue

        test_file = str(item.fspath)
        if 'test_unit_' in test_file:
            item.add_marker(pytest.mark.order(1))
        elif 'test_props_' in test_file:
            item.add_marker(pytest.mark.order(2))


@pytest.fixture
def tracks():
    """Five test tracks t1..t5."""
    return make_tracks(5)


@pytest.fixture
def rng():
    """Seeded random source so shuffle orders are reproducible."""
    return random.Random(1234)


@pytest.fixture
def engine(rng):
    """Empty queue engine with repeat off."""
    return QueueEngine(rng=rng, repeat="off")
