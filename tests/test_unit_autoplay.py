"""Unit tests for RandomAutoplay."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.autoplay import RandomAutoplay
from tests.helpers.tracks import make_tracks
from tests.mocks import MockLibrary


@pytest.fixture
def library():
    """Library of ten tracks, ids 1..10."""
    return MockLibrary(make_tracks(10))


class TestRandomAutoplay:
    """Test fetching and appending autoplay batches."""

    def test_fetch_excludes_queued_tracks(self, engine, library):
        """Test that tracks already in the queue are not offered again."""
        engine.replace(library.tracks[:3], 0)
        autoplay = RandomAutoplay(library, batch_size=4)

        batch = autoplay.fetch(engine)

        assert [t.id for t in batch] == [4, 5, 6, 7]
        assert library.requests == [(4, {1, 2, 3})]

    def test_fetch_caps_batch_size(self, engine):
        """Test that a library returning too many tracks is trimmed."""

        class GreedyLibrary:
            def get_random_tracks(self, count, exclude_ids):
                return make_tracks(20, start=100)

        autoplay = RandomAutoplay(GreedyLibrary(), batch_size=3)

        assert len(autoplay.fetch(engine)) == 3

    def test_extend_appends_batch(self, engine, library):
        """Test that an exhausted queue can continue after extend."""
        engine.replace(library.tracks[:2], 1)
        assert engine.advance() is None
        autoplay = RandomAutoplay(library, batch_size=2)

        added = autoplay.extend(engine)

        assert added == 2
        assert engine.advance().id == 3

    def test_extend_with_empty_library(self, engine):
        """Test that an empty library adds nothing."""
        engine.replace(make_tracks(2), 0)
        autoplay = RandomAutoplay(MockLibrary([]), batch_size=2)

        assert autoplay.extend(engine) == 0
        assert len(engine) == 2

    def test_invalid_batch_size(self, library):
        """Test that non-positive batch sizes are rejected."""
        with pytest.raises(ValueError):
            RandomAutoplay(library, batch_size=0)
