"""Value types shared by the queue engine and its collaborators."""

from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class Track(BaseModel):
    """An immutable track reference with cached display fields."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration: float | None = Field(None, ge=0, description="Length in seconds")
    path: str | None = None

    @property
    def display_name(self) -> str:
        """Artist - Title, falling back to the file name or id."""
        title = self.title or (self.path.rsplit("/", 1)[-1] if self.path else str(self.id))
        return f"{self.artist} - {title}" if self.artist else title


class PlaybackContext(BaseModel):
    """The source a listening session was started from."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(description="album, playlist, artist, search, library, queue or autoplay")
    id: int | str | None = None
    name: str | None = None


class RepeatMode(str, Enum):
    OFF = "off"
    ALL = "all"
    ONE = "one"

    @classmethod
    def parse(cls, value: "RepeatMode | str") -> "RepeatMode":
        """Accept enum members or strings; 'none' is an alias for off."""
        if isinstance(value, cls):
            return value
        value = str(value).strip().lower()
        if value == "none":
            return cls.OFF
        return cls(value)

    def next(self) -> "RepeatMode":
        """Cycle order used by the repeat button: off -> all -> one -> off."""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class UpcomingEntry:
    """One row of the upcoming view.

    Attributes:
        index: Absolute position of the track in the queue
        track: The track itself
        priority: True if the user explicitly queued it
    """

    index: int
    track: Track
    priority: bool = False
