"""Errors raised by the queue engine.

All of them are raised before any state is touched, so callers can re-read
the engine and retry or ignore them.
"""


class QueueError(Exception):
    """Base class for queue engine errors."""


class InvalidIndex(QueueError, IndexError):
    """Index out of bounds for the queue."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Index {index} out of range for queue of {size} track(s)")


class EmptyQueue(QueueError, ValueError):
    """A session cannot start from an empty track list."""

    def __init__(self):
        super().__init__("Cannot start playback from an empty track list")


class CannotRemoveCurrent(QueueError, ValueError):
    """The currently playing track cannot be removed."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Cannot remove the currently playing track at index {index}")


class InvalidRange(QueueError, ValueError):
    """Reorder touched history or the current track."""

    def __init__(self, from_index: int, to_index: int, reason: str = ""):
        self.from_index = from_index
        self.to_index = to_index
        message = f"Cannot move track from {from_index} to {to_index}"
        super().__init__(f"{message}: {reason}" if reason else message)


class CorruptState(QueueError, ValueError):
    """Saved queue state is not internally consistent."""
