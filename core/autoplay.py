"""Autoplay: keep the music going when the queue runs out."""

from config import AUTOPLAY_BATCH_SIZE
from core.logging import log_queue_operation
from core.queue import QueueEngine
from core.track import Track
from typing import Protocol


class LibraryProvider(Protocol):
    """The part of the music library autoplay needs."""

    def get_random_tracks(self, count: int, exclude_ids: set) -> list[Track]:
        """Return up to count random tracks whose ids are not in exclude_ids."""
        ...


class RandomAutoplay:
    """Picks random library tracks that are not already in the queue."""

    def __init__(self, library: LibraryProvider, batch_size: int = AUTOPLAY_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.library = library
        self.batch_size = batch_size

    def fetch(self, engine: QueueEngine) -> list[Track]:
        """Get the next batch of tracks for an exhausted queue.

        Args:
            engine: The queue being extended

        Returns:
            Tracks to append (may be empty if the library has nothing new)
        """
        exclude_ids = {track.id for track in engine.tracks}
        tracks = list(self.library.get_random_tracks(self.batch_size, exclude_ids))[: self.batch_size]
        tracks = [track for track in tracks if track.id not in exclude_ids]

        log_queue_operation("autoplay_fetch", requested=self.batch_size, received=len(tracks), queue_size=len(engine))
        return tracks

    def extend(self, engine: QueueEngine) -> int:
        """Fetch a batch and append it to the queue.

        Returns:
            Number of tracks appended
        """
        tracks = self.fetch(engine)
        engine.extend(tracks)
        return len(tracks)
